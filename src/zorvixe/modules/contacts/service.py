"""
Contacts Service Layer

Stores and lists contact form submissions.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.modules.contacts import repository
from zorvixe.modules.contacts.schemas import (
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    ContactSubmitResponse,
)
from zorvixe.modules.links.exceptions import StorageFailedError

logger = logging.getLogger(__name__)


async def submit_contact(db: AsyncSession, data: ContactCreate) -> ContactSubmitResponse:
    """
    Raises:
        StorageFailedError: If the submission could not be stored
    """
    try:
        contact = await repository.create(db, data)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to store contact submission: {e}", exc_info=True)
        raise StorageFailedError() from e

    logger.info(f"Contact submission stored: id={contact.id}, subject={contact.subject}")
    return ContactSubmitResponse(data=ContactResponse.model_validate(contact))


async def list_contacts(db: AsyncSession) -> ContactListResponse:
    contacts = await repository.get_all(db)
    return ContactListResponse(contacts=[ContactResponse.model_validate(c) for c in contacts])
