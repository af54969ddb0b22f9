"""
Fixtures for candidates tests.
"""

import io
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from zorvixe.core.storage import DocumentStorage
from zorvixe.modules.candidates.models import Candidate, CandidateLink, CandidateStatus

PDF_BYTES = b"%PDF-1.7\n" + b"0" * 4096 + b"\n%%EOF"


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def now():
    return datetime(2026, 3, 2, 10, 0, tzinfo=UTC)


@pytest.fixture
def storage(tmp_path):
    """Document storage rooted in a temporary directory."""
    return DocumentStorage(tmp_path / "uploads", chunk_size=1024)


@pytest.fixture
def make_upload():
    """Build an UploadFile the way FastAPI hands it to the endpoint."""

    def _make(data: bytes = PDF_BYTES, filename: str = "certificates.pdf", content_type="application/pdf"):
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


@pytest.fixture
def sample_candidate(now):
    candidate = MagicMock(spec=Candidate)
    candidate.id = uuid4()
    candidate.name = "Asha Rao"
    candidate.email = "asha@example.com"
    candidate.phone = "9123456780"
    candidate.position = "Backend Developer"
    candidate.candidate_code = "CAN-104233-AB12"
    candidate.status = CandidateStatus.PENDING
    candidate.created_at = now - timedelta(hours=2)
    candidate.updated_at = now - timedelta(hours=2)
    return candidate


@pytest.fixture
def sample_link(sample_candidate, now):
    link = MagicMock(spec=CandidateLink)
    link.id = uuid4()
    link.subject_id = sample_candidate.id
    link.token = "tok_" + "b" * 39
    link.active = True
    link.completed = False
    link.created_at = now - timedelta(hours=1)
    link.expires_at = now + timedelta(hours=4)
    return link
