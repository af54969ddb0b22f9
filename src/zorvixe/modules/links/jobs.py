"""
Access Link Background Jobs

Scheduled maintenance for the link workflows:
1. Remind link holders shortly before an unused link expires
2. Purge upload staging files left behind by a crashed process

Design Principles:
- Jobs are idempotent: a reminder is claimed by setting ``reminder_sent_at``
  while it is still unset, and only the claiming worker sends it
- Jobs open their own database sessions
- A failure on one link is logged and does not stop the job

Schedule:
- Reminders run every 15 minutes; the payment workflow reminds 3 days before
  expiry, onboarding 1 hour before
- Staging purge runs hourly
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from functools import partial
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from zorvixe.core.config import settings
from zorvixe.core.database import async_session_maker
from zorvixe.core.email import send_link_reminder
from zorvixe.core.scheduler import register_job
from zorvixe.core.storage import get_document_storage

from . import repository
from .workflow import LinkWorkflow

logger = logging.getLogger(__name__)

REMINDER_INTERVAL_MINUTES = 15
STAGING_MAX_AGE = timedelta(hours=1)

JOB_ID_SEND_REMINDERS = "links_send_expiry_reminders"
JOB_ID_PURGE_STAGING = "links_purge_staged_uploads"


async def _send_workflow_reminders(workflow: LinkWorkflow, now: datetime) -> dict[str, Any]:
    async with async_session_maker() as db:
        pending = await repository.get_links_needing_reminder(
            db, workflow, now, now + workflow.reminder_lead
        )

    logger.info(f"Found {len(pending)} {workflow.name} link(s) needing a reminder")

    summary: dict[str, Any] = {"sent": 0, "failed": 0, "skipped": 0, "errors": 0}

    for link, subject in pending:
        try:
            # Claim before sending; another worker may have picked the same link
            async with async_session_maker() as db:
                claimed = await repository.mark_reminder_sent(db, workflow, link.id, now)
            if not claimed:
                logger.info(f"Reminder for {workflow.name} link {link.id} already claimed")
                summary["skipped"] += 1
                continue

            email_sent = await send_link_reminder(
                to_email=subject.email,
                recipient_name=subject.name,
                action=workflow.reminder_action,
                link_url=workflow.build_url(settings.public_base_url, link.token),
                expires_at=link.expires_at,
            )
            # Not retried: the claim stays so a failing mailbox is not mailed every run
            if not email_sent:
                logger.error(f"Failed to send reminder for {workflow.name} link {link.id}")

            summary["sent" if email_sent else "failed"] += 1
        except Exception as e:
            logger.error(f"Error reminding {workflow.name} link {link.id}: {e}", exc_info=True)
            summary["errors"] += 1

    return summary


async def send_expiry_reminders(workflows: Sequence[LinkWorkflow]) -> dict[str, Any]:
    """
    Send one reminder per unused link that is about to expire.

    Returns:
        Dict with executed_at and a per-workflow count of sent, failed,
        skipped (claimed by another worker) and errored reminders
    """
    executed_at = datetime.now(UTC)
    logger.info(f"Starting link expiry reminder job at {executed_at.isoformat()}")

    results: dict[str, Any] = {"executed_at": executed_at.isoformat()}
    for workflow in workflows:
        results[workflow.name] = await _send_workflow_reminders(workflow, executed_at)

    logger.info(f"Link expiry reminder job completed: {results}")
    return results


async def purge_staged_uploads() -> dict[str, Any]:
    """Delete staging files older than an hour."""
    removed = await get_document_storage().purge_staging(STAGING_MAX_AGE)
    if removed:
        logger.warning(f"Purged {removed} abandoned staged upload(s)")
    return {"removed": removed}


def register_link_jobs(workflows: Sequence[LinkWorkflow]) -> None:
    """
    Register the link background jobs with the scheduler.

    Called during application startup, before the scheduler is started.
    """
    logger.info("Registering link background jobs...")

    register_job(
        job_id=JOB_ID_SEND_REMINDERS,
        func=partial(send_expiry_reminders, tuple(workflows)),
        trigger=IntervalTrigger(minutes=REMINDER_INTERVAL_MINUTES),
    )
    logger.info(
        f"Registered job: {JOB_ID_SEND_REMINDERS} (interval: {REMINDER_INTERVAL_MINUTES} minutes)"
    )

    register_job(
        job_id=JOB_ID_PURGE_STAGING,
        func=purge_staged_uploads,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_STAGING} (interval: 1 hour)")
