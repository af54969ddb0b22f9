"""
Candidates Repository

Database operations for candidates and their uploads. Link and completion
writes go through the shared link repository.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Candidate, CandidateLink, CandidateStatus, CandidateUpload
from .schemas import CandidateCreate


async def create_candidate(
    db: AsyncSession,
    data: CandidateCreate,
    *,
    candidate_code: str,
) -> Candidate:
    """Create a new candidate. Raises IntegrityError on a duplicate email."""
    new_candidate = Candidate(
        name=data.name,
        email=data.email,
        phone=data.phone,
        position=data.position,
        candidate_code=candidate_code,
    )

    db.add(new_candidate)
    await db.commit()
    await db.refresh(new_candidate)

    return new_candidate


async def get_by_id(db: AsyncSession, candidate_id: UUID) -> Candidate | None:
    """Get candidate by ID."""
    return await db.get(Candidate, candidate_id)


async def get_by_email(db: AsyncSession, email: str) -> Candidate | None:
    result = await db.execute(select(Candidate).where(Candidate.email == email))
    return result.scalar_one_or_none()


async def get_candidates_with_links(
    db: AsyncSession,
    now: datetime,
) -> list[tuple[Candidate, CandidateLink | None, CandidateUpload | None]]:
    """
    Get every candidate (newest first) with its usable link and its upload,
    if any.
    """
    result = await db.execute(
        select(Candidate, CandidateLink, CandidateUpload)
        .outerjoin(
            CandidateLink,
            and_(
                CandidateLink.subject_id == Candidate.id,
                CandidateLink.active.is_(True),
                CandidateLink.expires_at > now,
            ),
        )
        .outerjoin(CandidateUpload, CandidateUpload.subject_id == Candidate.id)
        .order_by(Candidate.created_at.desc())
    )
    return [(row[0], row[1], row[2]) for row in result.all()]


async def get_upload_with_candidate(
    db: AsyncSession,
    candidate_id: UUID,
) -> tuple[CandidateUpload, Candidate] | None:
    """Get a candidate's upload together with the candidate."""
    result = await db.execute(
        select(CandidateUpload, Candidate)
        .join(Candidate, CandidateUpload.subject_id == Candidate.id)
        .where(CandidateUpload.subject_id == candidate_id)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def update_status(
    db: AsyncSession,
    candidate: Candidate,
    status: CandidateStatus,
) -> Candidate:
    """Set a candidate's onboarding status."""
    candidate.status = status

    await db.commit()
    await db.refresh(candidate)

    return candidate
