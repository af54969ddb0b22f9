"""
Contacts Schemas
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

from zorvixe.core.validators import PersonName, Phone


class ContactCreate(BaseModel):
    """Request body for POST /contact/submit."""

    name: PersonName
    email: EmailStr
    phone: Phone
    subject: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=5000)]


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    subject: str
    message: str
    created_at: datetime


class ContactSubmitResponse(BaseModel):
    success: bool = True
    message: str = "Form submitted successfully"
    data: ContactResponse


class ContactListResponse(BaseModel):
    success: bool = True
    contacts: list[ContactResponse] = Field(default_factory=list)
