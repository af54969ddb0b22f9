"""
Contacts Router

Endpoints:
- POST /contact/submit - Submit the website contact form (public, rate limited)
- GET /contacts - List submissions, newest first
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.database import get_db
from zorvixe.core.rate_limit import rate_limit
from zorvixe.modules.contacts import service
from zorvixe.modules.contacts.schemas import (
    ContactCreate,
    ContactListResponse,
    ContactSubmitResponse,
)
from zorvixe.modules.links.exceptions import LinkServiceError, internal_error, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/contact/submit",
    response_model=ContactSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Contact Form",
)
@rate_limit(limit=5, window_seconds=60)
async def submit_contact(
    request: Request,
    data: ContactCreate,
    db: AsyncSession = Depends(get_db),
) -> ContactSubmitResponse:
    try:
        return await service.submit_contact(db, data)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error submitting contact form: {e}")
        raise internal_error() from e


@router.get("/contacts", response_model=ContactListResponse, summary="List Contact Submissions")
async def list_contacts(db: AsyncSession = Depends(get_db)) -> ContactListResponse:
    try:
        return await service.list_contacts(db)
    except Exception as e:
        logger.exception(f"Unexpected error listing contacts: {e}")
        raise internal_error() from e
