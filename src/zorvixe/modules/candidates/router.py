"""
Candidates Router

Public endpoints used by the holder of an onboarding link. No authentication:
the token in the link is the only credential.

Endpoints:
- GET /candidate-details/{token} - Candidate and upload state behind a link
- POST /candidate/upload/{token} - Upload the certificate bundle (once)

Security:
- Rate limited per client IP
- Only PDF files up to the configured ceiling (50 MB) are accepted
- Unknown, inactive and expired tokens all answer 404 INVALID_OR_EXPIRED_LINK
- Tokens are never logged
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.database import get_db
from zorvixe.core.rate_limit import rate_limit
from zorvixe.core.storage import DocumentStorage, get_document_storage
from zorvixe.modules.candidates import service
from zorvixe.modules.candidates.schemas import CandidateDetailsResponse, UploadResponse
from zorvixe.modules.links.exceptions import (
    AlreadyCompletedError,
    LinkServiceError,
    internal_error,
    to_http_exception,
)
from zorvixe.modules.links.schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Requests per minute per client IP
RATE_LIMIT_DETAILS = (30, 60)
RATE_LIMIT_UPLOAD = (5, 60)


@router.get(
    "/candidate-details/{token}",
    response_model=CandidateDetailsResponse,
    summary="Get Onboarding Details",
    description="""
Resolve an onboarding link to the candidate and their upload state.

Once the documents were uploaded the link stays readable and reports
`has_uploaded: true`, even after it expires.
""",
    responses={404: {"description": "Invalid or expired link", "model": ErrorResponse}},
)
@rate_limit(*RATE_LIMIT_DETAILS)
async def get_candidate_details(
    request: Request,
    token: str,
    db: AsyncSession = Depends(get_db),
) -> CandidateDetailsResponse:
    try:
        return await service.get_candidate_details(db, token)
    except LinkServiceError as e:
        logger.info(f"Onboarding link lookup rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching candidate details: {e}")
        raise internal_error() from e


@router.post(
    "/candidate/upload/{token}",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Onboarding Documents",
    description="""
Upload the candidate's certificates as one PDF (multipart field `certificate`).

Each candidate can upload exactly once; the file is kept after the link
expires.
""",
    responses={
        400: {"description": "No file uploaded", "model": ErrorResponse},
        404: {"description": "Invalid or expired link", "model": ErrorResponse},
        409: {"description": "Documents already uploaded", "model": ErrorResponse},
        413: {"description": "File too large", "model": ErrorResponse},
        415: {"description": "Not a PDF", "model": ErrorResponse},
        503: {"description": "Storage unavailable", "model": ErrorResponse},
    },
)
@rate_limit(*RATE_LIMIT_UPLOAD)
async def upload_certificate(
    request: Request,
    token: str,
    certificate: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> UploadResponse:
    try:
        return await service.upload_document(db, storage, token, certificate)
    except AlreadyCompletedError as e:
        logger.warning(f"Duplicate document upload rejected: {e.message}")
        raise to_http_exception(e) from e
    except LinkServiceError as e:
        logger.info(f"Document upload rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error uploading document: {e}")
        raise internal_error() from e
