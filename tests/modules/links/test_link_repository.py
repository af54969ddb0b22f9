"""
Unit tests for the link repository writes.

These tests cover:
- Outcome insert conflicts surfacing as OutcomeConflictError
- The conditional "not yet completed" update on the link
- The completion transaction is left to the caller to commit
- Reminder claims only succeed while no reminder was recorded
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from zorvixe.modules.links.repository import (
    OutcomeConflictError,
    mark_reminder_sent,
    record_completion,
)


@pytest.fixture
def link():
    return SimpleNamespace(id=uuid4(), subject_id=uuid4(), completed=False)


@pytest.fixture
def outcome():
    return SimpleNamespace(id=uuid4())


@pytest.mark.asyncio
class TestRecordCompletion:
    """Tests for record_completion."""

    async def test_stages_outcome_link_and_status(self, mock_db, onboarding, link, outcome):
        mock_db.execute = AsyncMock(return_value=MagicMock(rowcount=1))

        await record_completion(mock_db, onboarding, link, outcome)

        mock_db.add.assert_called_once_with(outcome)
        mock_db.flush.assert_called_once()
        # Link update and subject status update
        assert mock_db.execute.call_count == 2
        mock_db.commit.assert_not_called()

    async def test_unique_violation_is_conflict(self, mock_db, onboarding, link, outcome):
        mock_db.flush = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key value"))
        )

        with pytest.raises(OutcomeConflictError):
            await record_completion(mock_db, onboarding, link, outcome)

        mock_db.execute.assert_not_called()

    async def test_already_completed_link_is_conflict(self, mock_db, onboarding, link, outcome):
        mock_db.execute = AsyncMock(return_value=MagicMock(rowcount=0))

        with pytest.raises(OutcomeConflictError):
            await record_completion(mock_db, onboarding, link, outcome)

        # The subject status is never touched
        assert mock_db.execute.call_count == 1


@pytest.mark.asyncio
class TestMarkReminderSent:
    """Tests for claiming a reminder."""

    async def test_claim_succeeds_once(self, mock_db, payment):
        mock_db.execute = AsyncMock(return_value=MagicMock(rowcount=1))

        claimed = await mark_reminder_sent(mock_db, payment, uuid4(), datetime(2026, 3, 2, tzinfo=UTC))

        assert claimed is True
        mock_db.commit.assert_called_once()

    async def test_already_reminded_is_not_claimed(self, mock_db, payment):
        mock_db.execute = AsyncMock(return_value=MagicMock(rowcount=0))

        claimed = await mark_reminder_sent(mock_db, payment, uuid4(), datetime(2026, 3, 2, tzinfo=UTC))

        assert claimed is False

    async def test_update_requires_unset_reminder(self, mock_db, onboarding):
        mock_db.execute = AsyncMock(return_value=MagicMock(rowcount=1))

        await mark_reminder_sent(mock_db, onboarding, uuid4(), datetime(2026, 3, 2, tzinfo=UTC))

        stmt = mock_db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "candidate_links.reminder_sent_at IS NULL" in sql
