"""
Candidates Service Layer

Business logic for the candidate document-onboarding workflow.

This module implements:
1. Candidate management:
   - Create candidates (one per email) with a generated candidate code
   - List candidates with their usable link and upload state
   - Set the onboarding status after review

2. Onboarding links (via the shared link engine):
   - Issue a 5-hour link, optionally emailing it to the candidate
   - Resolve a token to the candidate's onboarding state
   - Toggle the candidate's current link

3. Document upload:
   - Stream the PDF into staging, enforcing type and size while reading
   - Record exactly one upload per candidate; the staged file is moved into
     permanent storage just before the commit
   - Staged bytes are always deleted; a promoted file is deleted again when
     the commit fails

4. Download:
   - Serve the stored PDF to administrators; uploads never expire
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.config import settings
from zorvixe.core.email import send_onboarding_link
from zorvixe.core.identifiers import generate_candidate_code
from zorvixe.core.storage import (
    DocumentStorage,
    StorageError,
    UnsupportedContentTypeError,
    UploadTooLargeError,
)
from zorvixe.modules.candidates import repository
from zorvixe.modules.candidates.models import (
    Candidate,
    CandidateLink,
    CandidateStatus,
    CandidateUpload,
    UploadStatus,
)
from zorvixe.modules.candidates.schemas import (
    CandidateCreate,
    CandidateDetailsResponse,
    CandidateLinkCreate,
    CandidateLinkResponse,
    CandidateListItem,
    CandidateListResponse,
    CandidateResponse,
    CandidateView,
    UploadInfo,
    UploadResponse,
)
from zorvixe.modules.links import service as links
from zorvixe.modules.links.exceptions import (
    AlreadyCompletedError,
    LinkServiceError,
    OutcomeNotFoundError,
    StorageFailedError,
    SubjectNotFoundError,
    ValidationFailedError,
)
from zorvixe.modules.links.schemas import LinkInfo, LinkToggleResponse
from zorvixe.modules.links.workflow import LinkWorkflow

logger = logging.getLogger(__name__)

# Constants
ONBOARDING_LINK_TTL = timedelta(hours=5)
ONBOARDING_REMINDER_LEAD = timedelta(hours=1)
ALLOWED_CONTENT_TYPES = frozenset({"application/pdf"})
STORAGE_KEY_PREFIX = "candidate"

ONBOARDING_WORKFLOW = LinkWorkflow(
    name="onboarding",
    subject_label="candidate",
    subject_model=Candidate,
    link_model=CandidateLink,
    outcome_model=CandidateUpload,
    ttl=ONBOARDING_LINK_TTL,
    url_path="onboarding",
    completed_status=CandidateStatus.DOCUMENTS_UPLOADED,
    outcome_ref=lambda upload: str(upload.id),
    already_completed_message="Certificate already uploaded for this candidate",
    reminder_lead=ONBOARDING_REMINDER_LEAD,
    reminder_action="upload your onboarding documents",
)


class DuplicateCandidateError(LinkServiceError):
    """Raised when a candidate with the same email already exists."""

    def __init__(self):
        super().__init__(
            message="A candidate with this email already exists",
            error_code="DUPLICATE_CANDIDATE",
            status_code=409,
        )


class UploadNotFoundError(OutcomeNotFoundError):
    """Raised when a candidate has no stored upload."""

    def __init__(self, message: str = "No uploaded file found for this candidate"):
        super().__init__(message=message, error_code="UPLOAD_NOT_FOUND")


class UnsupportedMediaTypeError(LinkServiceError):
    """Raised when the uploaded file is not a PDF."""

    def __init__(self):
        super().__init__(
            message="Only PDF files are allowed",
            error_code="UNSUPPORTED_MEDIA_TYPE",
            status_code=415,
        )


class FileTooLargeError(LinkServiceError):
    """Raised when the uploaded file exceeds the size ceiling."""

    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"File exceeds the maximum size of {max_bytes // (1024 * 1024)} MB",
            error_code="FILE_TOO_LARGE",
            status_code=413,
        )


@dataclass
class StoredDocument:
    """A stored upload ready to be streamed to an administrator."""

    path: Path
    filename: str
    content_type: str


def _utcnow() -> datetime:
    return datetime.now(UTC)


def download_filename(candidate_name: str) -> str:
    """Attachment name for a candidate's bundle, e.g. ``Asha Rao-certificates.pdf``."""
    safe_name = "".join(ch for ch in candidate_name if ch not in '"\\/\r\n').strip()
    return f"{safe_name or 'candidate'}-certificates.pdf"


# ============================================
# Candidates
# ============================================


async def create_candidate(db: AsyncSession, data: CandidateCreate) -> CandidateResponse:
    """
    Create a candidate with a generated candidate code.

    Raises:
        DuplicateCandidateError: If a candidate with this email exists
        StorageFailedError: If the candidate could not be stored
    """
    if await repository.get_by_email(db, data.email) is not None:
        raise DuplicateCandidateError()

    try:
        candidate = await repository.create_candidate(
            db, data, candidate_code=generate_candidate_code()
        )
    except IntegrityError as e:
        await db.rollback()
        # Lost a race with a concurrent create for the same email
        if await repository.get_by_email(db, data.email) is not None:
            raise DuplicateCandidateError() from e
        logger.error(f"Failed to create candidate: {e.orig}")
        raise StorageFailedError() from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create candidate: {e}", exc_info=True)
        raise StorageFailedError() from e

    logger.info(f"Candidate created: id={candidate.id}, code={candidate.candidate_code}")
    return CandidateResponse.model_validate(candidate)


async def list_candidates(
    db: AsyncSession,
    *,
    now: datetime | None = None,
) -> CandidateListResponse:
    """List candidates, newest first, with their usable link and upload state."""
    rows = await repository.get_candidates_with_links(db, now or _utcnow())

    candidates = []
    for candidate, link, upload in rows:
        item = CandidateListItem.model_validate(candidate)
        item.current_link = LinkInfo.model_validate(link) if link else None
        item.upload_completed = upload is not None
        item.upload = UploadInfo.model_validate(upload) if upload else None
        candidates.append(item)

    return CandidateListResponse(candidates=candidates)


async def update_candidate_status(
    db: AsyncSession,
    candidate_id: UUID,
    status: CandidateStatus,
) -> CandidateResponse:
    """
    Set a candidate's onboarding status.

    Raises:
        SubjectNotFoundError: If the candidate does not exist
    """
    candidate = await repository.get_by_id(db, candidate_id)
    if candidate is None:
        raise SubjectNotFoundError("candidate")

    candidate = await repository.update_status(db, candidate, status)
    logger.info(f"Candidate {candidate_id} status set to {status.value}")

    return CandidateResponse.model_validate(candidate)


# ============================================
# Onboarding Links
# ============================================


async def issue_onboarding_link(
    db: AsyncSession,
    data: CandidateLinkCreate,
    *,
    now: datetime | None = None,
) -> CandidateLinkResponse:
    """
    Issue a new onboarding link for a candidate, replacing any previous one.

    Raises:
        SubjectNotFoundError: If the candidate does not exist
        StorageFailedError: If the store fails
    """
    issued = await links.issue_link(
        db, ONBOARDING_WORKFLOW, data.candidate_id, base_url=settings.public_base_url, now=now
    )
    candidate = issued.subject

    if data.notify:
        email_sent = await send_onboarding_link(
            to_email=candidate.email,
            candidate_name=candidate.name,
            position=candidate.position,
            link_url=issued.url,
            expires_at=issued.link.expires_at,
        )
        if not email_sent:
            logger.error(f"Failed to email onboarding link to candidate {candidate.id}")

    return CandidateLinkResponse(
        link=issued.url,
        token=issued.link.token,
        expires_at=issued.link.expires_at,
        candidate=CandidateResponse.model_validate(candidate),
    )


async def toggle_onboarding_link(
    db: AsyncSession,
    candidate_id: UUID,
    active: bool,
    *,
    now: datetime | None = None,
) -> LinkToggleResponse:
    """
    Raises:
        LinkNotFoundError: If the candidate has no unexpired link
    """
    link = await links.set_link_active(db, ONBOARDING_WORKFLOW, candidate_id, active, now=now)
    return LinkToggleResponse(
        message=f"Link {'activated' if active else 'deactivated'} successfully",
        link=LinkInfo.model_validate(link),
    )


async def get_candidate_details(
    db: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> CandidateDetailsResponse:
    """
    Resolve an onboarding token to the candidate and their upload state.

    Raises:
        InvalidOrExpiredLinkError: If the token is unknown, inactive or expired
            (and not completed)
    """
    resolution = await links.resolve_link(db, ONBOARDING_WORKFLOW, token, now=now)

    return CandidateDetailsResponse(
        candidate=CandidateView.model_validate(resolution.subject),
        link_id=resolution.link.id,
        expires_at=resolution.link.expires_at,
        has_uploaded=resolution.completed,
        upload=UploadInfo.model_validate(resolution.outcome) if resolution.outcome else None,
    )


# ============================================
# Document Upload
# ============================================


async def _discard_promoted(storage: DocumentStorage, key: str) -> None:
    try:
        await storage.delete(key)
        logger.info(f"Removed stored document {key} after failed completion")
    except OSError as e:
        logger.error(f"Could not remove orphaned document {key}: {e}")


async def upload_document(
    db: AsyncSession,
    storage: DocumentStorage,
    token: str,
    upload: UploadFile | None,
    *,
    max_bytes: int | None = None,
    now: datetime | None = None,
) -> UploadResponse:
    """
    Store the candidate's certificate bundle through their onboarding link.

    Raises:
        ValidationFailedError: If no file was sent
        InvalidOrExpiredLinkError: If the token is unknown, inactive or expired
        AlreadyCompletedError: If the candidate already uploaded
        UnsupportedMediaTypeError: If the file is not a PDF
        FileTooLargeError: If the file exceeds the size ceiling
        StorageFailedError: If the database or document storage fails
    """
    now = now or _utcnow()
    max_bytes = max_bytes or settings.upload_max_bytes

    if upload is None or not upload.filename:
        raise ValidationFailedError({"certificate": "No file uploaded"})

    # Reject bad tokens before any bytes are written
    resolution = await links.resolve_link(db, ONBOARDING_WORKFLOW, token, now=now)
    if resolution.completed:
        raise AlreadyCompletedError(ONBOARDING_WORKFLOW.already_completed_message)

    try:
        async with storage.receive(
            upload, max_bytes=max_bytes, allowed_content_types=ALLOWED_CONTENT_TYPES
        ) as staged:
            key = storage.new_key(STORAGE_KEY_PREFIX, ".pdf")

            def build_upload(
                candidate: Candidate, link: CandidateLink, at: datetime
            ) -> CandidateUpload:
                return CandidateUpload(
                    id=uuid4(),
                    subject_id=candidate.id,
                    file_name=staged.original_name,
                    file_path=key,
                    file_size=staged.size,
                    content_type=staged.content_type,
                    status=UploadStatus.UPLOADED,
                    upload_date=at,
                )

            async def promote(_record: CandidateUpload) -> None:
                await storage.promote(staged, key)

            committed = False
            try:
                record = await links.complete_link(
                    db,
                    ONBOARDING_WORKFLOW,
                    token,
                    build_upload,
                    before_commit=promote,
                    now=now,
                )
                committed = True
            finally:
                if staged.promoted and not committed:
                    await _discard_promoted(storage, key)

    except UnsupportedContentTypeError as e:
        raise UnsupportedMediaTypeError() from e
    except UploadTooLargeError as e:
        raise FileTooLargeError(e.max_bytes) from e
    except StorageError as e:
        logger.error(f"Document storage failed while receiving upload: {e}")
        raise StorageFailedError() from e

    logger.info(
        f"Candidate {record.subject_id} uploaded {record.file_size} bytes as {record.file_path}"
    )

    return UploadResponse(upload=UploadInfo.model_validate(record))


# ============================================
# Download
# ============================================


async def get_document(
    db: AsyncSession,
    storage: DocumentStorage,
    candidate_id: UUID,
) -> StoredDocument:
    """
    Locate a candidate's stored upload.

    Raises:
        UploadNotFoundError: If there is no upload, or its file is missing
    """
    row = await repository.get_upload_with_candidate(db, candidate_id)
    if row is None:
        raise UploadNotFoundError()

    upload, candidate = row
    if not await storage.exists(upload.file_path):
        logger.error(f"Stored document {upload.file_path} for candidate {candidate_id} is missing")
        raise UploadNotFoundError("File not found on server")

    return StoredDocument(
        path=storage.path_for(upload.file_path),
        filename=download_filename(candidate.name),
        content_type=upload.content_type,
    )
