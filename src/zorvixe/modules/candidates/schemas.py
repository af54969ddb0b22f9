"""
Candidates Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from zorvixe.core.validators import PersonName, Phone
from zorvixe.modules.candidates.models import CandidateStatus, UploadStatus
from zorvixe.modules.links.schemas import LinkInfo


class CandidateCreate(BaseModel):
    """Request body for POST /admin/candidates."""

    name: PersonName
    email: EmailStr
    phone: Phone
    position: str = Field(..., min_length=2, max_length=200)


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    position: str
    candidate_code: str
    status: CandidateStatus
    created_at: datetime
    updated_at: datetime


class CandidateCreateResponse(BaseModel):
    success: bool = True
    candidate: CandidateResponse


class UploadInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_name: str
    file_size: int
    content_type: str
    status: UploadStatus
    upload_date: datetime


class CandidateListItem(CandidateResponse):
    """A candidate with its usable link and upload state."""

    current_link: LinkInfo | None = None
    upload_completed: bool = False
    upload: UploadInfo | None = None


class CandidateListResponse(BaseModel):
    success: bool = True
    candidates: list[CandidateListItem]


class CandidateLinkCreate(BaseModel):
    """Request body for POST /admin/candidate-links."""

    candidate_id: UUID
    notify: bool = False


class CandidateLinkResponse(BaseModel):
    success: bool = True
    link: str
    token: str
    expires_at: datetime
    candidate: CandidateResponse


class CandidateView(BaseModel):
    """What the holder of an onboarding link sees."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    position: str
    candidate_code: str
    status: CandidateStatus


class CandidateDetailsResponse(BaseModel):
    """Response for GET /candidate-details/{token}."""

    success: bool = True
    candidate: CandidateView
    link_id: UUID
    expires_at: datetime
    has_uploaded: bool
    upload: UploadInfo | None = None


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "Certificate uploaded successfully. The file will be stored permanently."
    upload: UploadInfo


class CandidateStatusUpdate(BaseModel):
    """Request body for PUT /admin/candidates/{id}/status."""

    status: CandidateStatus


class CandidateStatusResponse(BaseModel):
    success: bool = True
    message: str = "Candidate status updated"
    candidate: CandidateResponse
