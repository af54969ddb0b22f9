"""
Contacts Repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Contact
from .schemas import ContactCreate


async def create(db: AsyncSession, data: ContactCreate) -> Contact:
    """Store a contact form submission."""
    contact = Contact(
        name=data.name,
        email=data.email,
        phone=data.phone,
        subject=data.subject,
        message=data.message,
    )

    db.add(contact)
    await db.commit()
    await db.refresh(contact)

    return contact


async def get_all(db: AsyncSession) -> list[Contact]:
    """All submissions, newest first."""
    result = await db.execute(select(Contact).order_by(Contact.created_at.desc()))
    return list(result.scalars().all())
