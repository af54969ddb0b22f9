"""
Access Link Schemas

Request and response shapes shared by the payment and onboarding link
endpoints.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class LinkToggleRequest(BaseModel):
    """Request body for PUT /admin/*-links/{subject_id}/toggle."""

    active: bool


class LinkInfo(BaseModel):
    """A link as shown to administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    active: bool
    completed: bool
    created_at: datetime
    expires_at: datetime


class LinkToggleResponse(BaseModel):
    message: str
    link: LinkInfo


class ErrorResponse(BaseModel):
    """Error body returned in ``detail`` by every link endpoint."""

    error: str
    message: str
    errors: dict[str, str] | None = None
