"""
Candidates Admin Router

API endpoints for administrators to manage candidates, their onboarding links
and uploaded documents.

Endpoints:
- POST /admin/candidates - Create a candidate
- GET /admin/candidates - List candidates with their usable link and upload
- PUT /admin/candidates/{id}/status - Set the onboarding status
- POST /admin/candidate-links - Issue an onboarding link (replaces the previous one)
- PUT /admin/candidate-links/{candidate_id}/toggle - Activate/deactivate the current link
- GET /admin/candidate-download/{candidate_id} - Download the uploaded PDF
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.database import get_db
from zorvixe.core.storage import DocumentStorage, get_document_storage
from zorvixe.modules.candidates import service
from zorvixe.modules.candidates.schemas import (
    CandidateCreate,
    CandidateCreateResponse,
    CandidateLinkCreate,
    CandidateLinkResponse,
    CandidateListResponse,
    CandidateStatusResponse,
    CandidateStatusUpdate,
)
from zorvixe.modules.candidates.service import DuplicateCandidateError
from zorvixe.modules.links.exceptions import LinkServiceError, internal_error, to_http_exception
from zorvixe.modules.links.schemas import ErrorResponse, LinkToggleRequest, LinkToggleResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Candidates
# ============================================


@router.post(
    "/candidates",
    response_model=CandidateCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Candidate",
    responses={409: {"description": "Email already exists", "model": ErrorResponse}},
)
async def create_candidate(
    data: CandidateCreate,
    db: AsyncSession = Depends(get_db),
) -> CandidateCreateResponse:
    try:
        candidate = await service.create_candidate(db, data)
        return CandidateCreateResponse(candidate=candidate)
    except DuplicateCandidateError as e:
        logger.warning(f"Duplicate candidate rejected: {e.message}")
        raise to_http_exception(e) from e
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error creating candidate: {e}")
        raise internal_error() from e


@router.get("/candidates", response_model=CandidateListResponse, summary="List Candidates")
async def list_candidates(db: AsyncSession = Depends(get_db)) -> CandidateListResponse:
    try:
        return await service.list_candidates(db)
    except Exception as e:
        logger.exception(f"Unexpected error listing candidates: {e}")
        raise internal_error() from e


@router.put(
    "/candidates/{candidate_id}/status",
    response_model=CandidateStatusResponse,
    summary="Update Candidate Status",
    responses={404: {"description": "Candidate not found", "model": ErrorResponse}},
)
async def update_candidate_status(
    candidate_id: UUID,
    data: CandidateStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> CandidateStatusResponse:
    try:
        candidate = await service.update_candidate_status(db, candidate_id, data.status)
        return CandidateStatusResponse(candidate=candidate)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating candidate {candidate_id}: {e}")
        raise internal_error() from e


# ============================================
# Onboarding Links
# ============================================


@router.post(
    "/candidate-links",
    response_model=CandidateLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Onboarding Link",
    description="""
Issue a 5-hour onboarding link for a candidate.

Every earlier link of the candidate is deactivated in the same transaction.
With `notify: true` the link is also emailed to the candidate.
""",
    responses={404: {"description": "Candidate not found", "model": ErrorResponse}},
)
async def issue_candidate_link(
    data: CandidateLinkCreate,
    db: AsyncSession = Depends(get_db),
) -> CandidateLinkResponse:
    try:
        return await service.issue_onboarding_link(db, data)
    except LinkServiceError as e:
        logger.warning(f"Onboarding link not issued for candidate {data.candidate_id}: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error issuing onboarding link: {e}")
        raise internal_error() from e


@router.put(
    "/candidate-links/{candidate_id}/toggle",
    response_model=LinkToggleResponse,
    summary="Activate or Deactivate Onboarding Link",
    responses={404: {"description": "No unexpired link", "model": ErrorResponse}},
)
async def toggle_candidate_link(
    candidate_id: UUID,
    data: LinkToggleRequest,
    db: AsyncSession = Depends(get_db),
) -> LinkToggleResponse:
    try:
        return await service.toggle_onboarding_link(db, candidate_id, data.active)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error toggling onboarding link: {e}")
        raise internal_error() from e


# ============================================
# Documents
# ============================================


@router.get(
    "/candidate-download/{candidate_id}",
    response_class=FileResponse,
    summary="Download Candidate Documents",
    responses={404: {"description": "No uploaded file", "model": ErrorResponse}},
)
async def download_candidate_documents(
    candidate_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> FileResponse:
    try:
        document = await service.get_document(db, storage, candidate_id)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error downloading documents for {candidate_id}: {e}")
        raise internal_error() from e

    return FileResponse(
        document.path,
        media_type=document.content_type,
        filename=document.filename,
    )
