"""
Fixtures for link engine tests.

``FakeLinkStore`` mirrors the link repository API over in-memory rows. Its
``record_completion`` enforces one outcome per subject atomically, like the
unique constraint plus conditional update of the real store, and every call
yields to the event loop so concurrent callers interleave.
"""

import asyncio
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from zorvixe.modules.candidates.models import CandidateStatus
from zorvixe.modules.candidates.service import ONBOARDING_WORKFLOW
from zorvixe.modules.clients.service import PAYMENT_WORKFLOW
from zorvixe.modules.links.repository import OutcomeConflictError


class FakeLinkStore:
    OutcomeConflictError = OutcomeConflictError

    def __init__(self):
        self.subjects: dict = {}
        self.links: list[SimpleNamespace] = []
        self.outcomes: dict = {}
        self.completion_attempts = 0

    def add_subject(self, **fields) -> SimpleNamespace:
        subject = SimpleNamespace(
            id=uuid4(),
            name="Asha Rao",
            email="asha@example.com",
            status=CandidateStatus.PENDING,
            **fields,
        )
        self.subjects[subject.id] = subject
        return subject

    def links_for(self, subject_id) -> list[SimpleNamespace]:
        return [link for link in self.links if link.subject_id == subject_id]

    async def get_subject(self, db, workflow, subject_id, *, for_update=False):
        await asyncio.sleep(0)
        return self.subjects.get(subject_id)

    async def replace_active_link(self, db, workflow, subject_id, token, now):
        await asyncio.sleep(0)
        for link in self.links_for(subject_id):
            link.active = False
        link = SimpleNamespace(
            id=uuid4(),
            subject_id=subject_id,
            token=token,
            active=True,
            completed=False,
            outcome_ref=None,
            created_at=now,
            expires_at=now + workflow.ttl,
            reminder_sent_at=None,
        )
        self.links.append(link)
        return link

    async def get_link_by_token(self, db, workflow, token, *, for_update=False):
        await asyncio.sleep(0)
        return next((link for link in self.links if link.token == token), None)

    async def get_current_link(self, db, workflow, subject_id, *, for_update=False):
        await asyncio.sleep(0)
        links = self.links_for(subject_id)
        return links[-1] if links else None

    async def set_link_active(self, db, link, active):
        link.active = active
        return link

    async def get_outcome_for_subject(self, db, workflow, subject_id):
        await asyncio.sleep(0)
        return self.outcomes.get(subject_id)

    async def record_completion(self, db, workflow, link, outcome):
        self.completion_attempts += 1
        await asyncio.sleep(0)
        if link.subject_id in self.outcomes or link.completed:
            raise OutcomeConflictError("duplicate outcome")
        self.outcomes[link.subject_id] = outcome
        link.completed = True
        link.outcome_ref = workflow.outcome_ref(outcome)
        self.subjects[link.subject_id].status = workflow.completed_status


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def store():
    """In-memory link store patched in place of the link repository."""
    fake = FakeLinkStore()
    with patch("zorvixe.modules.links.service.repository", fake):
        yield fake


@pytest.fixture
def onboarding():
    return ONBOARDING_WORKFLOW


@pytest.fixture
def payment():
    return PAYMENT_WORKFLOW


@pytest.fixture
def t0():
    return datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest.fixture
def build_outcome():
    """Outcome factory in the shape ``complete_link`` expects."""

    def _build(subject, link, now):
        return SimpleNamespace(id=uuid4(), subject_id=subject.id, file_name="certs.pdf", created=now)

    return _build
