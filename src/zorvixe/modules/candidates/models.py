"""
Candidates Models

Database models for the candidate document-onboarding workflow: candidates,
their onboarding links, and the uploaded certificate bundle.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, Index, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from zorvixe.core.database import Base
from zorvixe.modules.links.models import AccessLinkMixin, SubjectOutcomeMixin


class CandidateStatus(str, enum.Enum):
    """Onboarding status of a candidate. Set by the upload, then by administrators."""

    PENDING = "pending"
    DOCUMENTS_UPLOADED = "documents_uploaded"
    APPROVED = "approved"
    REJECTED = "rejected"


class UploadStatus(str, enum.Enum):
    UPLOADED = "uploaded"


class Candidate(Base):
    """A new hire who uploads onboarding documents through a link."""

    __tablename__ = "candidates"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[str] = mapped_column(String(200), nullable=False)
    candidate_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    status: Mapped[CandidateStatus] = mapped_column(
        Enum(CandidateStatus, name="candidate_status"),
        nullable=False,
        default=CandidateStatus.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("ix_candidates_created_at", "created_at"),)


class CandidateLink(AccessLinkMixin, Base):
    """Onboarding link. Valid for 5 hours."""

    __tablename__ = "candidate_links"
    __subject_table__ = "candidates"
    __subject_column__ = "candidate_id"

    # At most one active link per candidate
    __table_args__ = (
        Index(
            "uq_candidate_links_active_candidate",
            "candidate_id",
            unique=True,
            postgresql_where=text("active"),
        ),
    )


class CandidateUpload(SubjectOutcomeMixin, Base):
    """
    A candidate's uploaded certificate bundle.

    The file lives in document storage under ``file_path`` and is kept after
    the link expires.
    """

    __tablename__ = "candidate_uploads"
    __subject_table__ = "candidates"
    __subject_column__ = "candidate_id"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Opaque document storage key
    file_path: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[UploadStatus] = mapped_column(
        Enum(UploadStatus, name="upload_status"),
        nullable=False,
        default=UploadStatus.UPLOADED,
    )

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
