"""
Unit tests for link background jobs.

These tests cover:
- Expiry reminders are claimed, then sent once per link
- A reminder claimed by another worker is skipped
- Failed deliveries are still marked
- Errors on one link do not stop the job
- Job registration
"""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from zorvixe.modules.links import jobs


def _pending(t0, count):
    return [
        (
            SimpleNamespace(id=uuid4(), token=f"token-{i}", expires_at=t0 + timedelta(minutes=30)),
            SimpleNamespace(name=f"Candidate {i}", email=f"c{i}@example.com"),
        )
        for i in range(count)
    ]


@pytest.fixture
def session_maker():
    """async_session_maker replacement yielding a mock session."""
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=AsyncMock())
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch("zorvixe.modules.links.jobs.async_session_maker", maker):
        yield maker


@pytest.mark.asyncio
class TestSendExpiryReminders:
    """Tests for the expiry reminder job."""

    async def test_sends_and_marks_each_link(self, session_maker, onboarding, t0):
        pending = _pending(t0, 2)

        with (
            patch("zorvixe.modules.links.jobs.repository") as mock_repo,
            patch("zorvixe.modules.links.jobs.send_link_reminder") as mock_send,
        ):
            mock_repo.get_links_needing_reminder = AsyncMock(return_value=pending)
            mock_repo.mark_reminder_sent = AsyncMock(return_value=True)
            mock_send.return_value = True

            summary = await jobs._send_workflow_reminders(onboarding, t0)

        assert summary == {"sent": 2, "failed": 0, "skipped": 0, "errors": 0}
        assert mock_repo.mark_reminder_sent.call_count == 2
        _, kwargs = mock_send.call_args
        assert kwargs["link_url"].endswith("/onboarding/token-1")
        assert kwargs["action"] == onboarding.reminder_action

    async def test_failed_delivery_is_still_marked(self, session_maker, payment, t0):
        with (
            patch("zorvixe.modules.links.jobs.repository") as mock_repo,
            patch("zorvixe.modules.links.jobs.send_link_reminder") as mock_send,
        ):
            mock_repo.get_links_needing_reminder = AsyncMock(return_value=_pending(t0, 1))
            mock_repo.mark_reminder_sent = AsyncMock(return_value=True)
            mock_send.return_value = False

            summary = await jobs._send_workflow_reminders(payment, t0)

        assert summary["failed"] == 1
        mock_repo.mark_reminder_sent.assert_called_once()

    async def test_error_on_one_link_continues(self, session_maker, onboarding, t0):
        with (
            patch("zorvixe.modules.links.jobs.repository") as mock_repo,
            patch("zorvixe.modules.links.jobs.send_link_reminder") as mock_send,
        ):
            mock_repo.get_links_needing_reminder = AsyncMock(return_value=_pending(t0, 3))
            mock_repo.mark_reminder_sent = AsyncMock(return_value=True)
            mock_send.side_effect = [True, RuntimeError("smtp down"), True]

            summary = await jobs._send_workflow_reminders(onboarding, t0)

        assert summary == {"sent": 2, "failed": 0, "skipped": 0, "errors": 1}

    async def test_reminder_claimed_elsewhere_is_not_sent(self, session_maker, onboarding, t0):
        pending = _pending(t0, 2)

        with (
            patch("zorvixe.modules.links.jobs.repository") as mock_repo,
            patch("zorvixe.modules.links.jobs.send_link_reminder") as mock_send,
        ):
            mock_repo.get_links_needing_reminder = AsyncMock(return_value=pending)
            # A second scheduler process got to the first link already
            mock_repo.mark_reminder_sent = AsyncMock(side_effect=[False, True])
            mock_send.return_value = True

            summary = await jobs._send_workflow_reminders(onboarding, t0)

        assert summary == {"sent": 1, "failed": 0, "skipped": 1, "errors": 0}
        mock_send.assert_called_once()
        assert mock_send.call_args.kwargs["to_email"] == "c1@example.com"

    async def test_claim_happens_before_send(self, session_maker, payment, t0):
        order = []

        async def claim(db, workflow, link_id, sent_at):
            order.append("claim")
            return True

        async def send(**kwargs):
            order.append("send")
            return True

        with (
            patch("zorvixe.modules.links.jobs.repository") as mock_repo,
            patch("zorvixe.modules.links.jobs.send_link_reminder", side_effect=send),
        ):
            mock_repo.get_links_needing_reminder = AsyncMock(return_value=_pending(t0, 1))
            mock_repo.mark_reminder_sent = AsyncMock(side_effect=claim)

            await jobs._send_workflow_reminders(payment, t0)

        assert order == ["claim", "send"]

    async def test_reports_every_workflow(self, onboarding, payment):
        with patch(
            "zorvixe.modules.links.jobs._send_workflow_reminders",
            AsyncMock(return_value={"sent": 0, "failed": 0, "errors": 0}),
        ):
            results = await jobs.send_expiry_reminders([payment, onboarding])

        assert "executed_at" in results
        assert set(results) == {"executed_at", "payment", "onboarding"}


class TestRegisterLinkJobs:
    """Tests for job registration."""

    def test_registers_both_jobs(self, onboarding, payment):
        with patch("zorvixe.modules.links.jobs.register_job") as mock_register:
            jobs.register_link_jobs([payment, onboarding])

        job_ids = [call.kwargs["job_id"] for call in mock_register.call_args_list]
        assert job_ids == [jobs.JOB_ID_SEND_REMINDERS, jobs.JOB_ID_PURGE_STAGING]
        reminder_func = mock_register.call_args_list[0].kwargs["func"]
        assert reminder_func.args == ((payment, onboarding),)
