"""
Access Link Service

The token-gated, single-completion engine shared by the payment and
onboarding workflows.

This module implements:
1. Issuing:
   - Lock the subject row, deactivate its links and insert a fresh one
   - Build the public URL for the new token

2. Access gate:
   - ``is_link_usable``: active and not yet expired
   - ``is_link_readable``: usable, or already completed (completion is
     absorbing, so the holder can always see that it was done)

3. Completion:
   - Lock the subject row, then the token row, and re-apply the gate
     (issuing locks in the same order)
   - Reject a token that was completed, or a subject that already has an
     outcome through an earlier token
   - Persist the outcome, mark the token completed and update the subject
     status in one transaction

4. Admin control:
   - Toggle the active flag of a subject's most recent, unexpired link
   - Expiry is fixed at issue time and never extended

Security considerations:
- Tokens come from ``secrets.token_urlsafe`` (256 bits)
- Unknown, deactivated and expired tokens fail with the same error
- Tokens are never logged
- Store failures are logged server-side and reported as an opaque error
"""

import logging
import secrets
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.storage import StorageError

from . import repository
from .exceptions import (
    AlreadyCompletedError,
    InvalidOrExpiredLinkError,
    LinkNotFoundError,
    LinkServiceError,
    StorageFailedError,
    SubjectNotFoundError,
)
from .workflow import LinkWorkflow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy

BuildOutcome = Callable[[Any, Any, datetime], Any]
BeforeCommit = Callable[[Any], Awaitable[None]]


def generate_link_token() -> str:
    """Generate a URL-safe access token (43 characters)."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_link_usable(link: Any, now: datetime) -> bool:
    """A link can be acted on while it is active and ``now`` is before its expiry."""
    return bool(link.active) and now < link.expires_at


def is_link_readable(link: Any, now: datetime) -> bool:
    """A completed link stays readable forever; otherwise it must be usable."""
    return bool(link.completed) or is_link_usable(link, now)


@dataclass
class IssuedLink:
    link: Any
    subject: Any
    url: str


@dataclass
class LinkResolution:
    link: Any
    subject: Any
    outcome: Any | None

    @property
    def completed(self) -> bool:
        return bool(self.link.completed) or self.outcome is not None


@asynccontextmanager
async def _store_operation(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Roll back on any failure. Store failures become ``StorageFailedError``;
    service errors pass through unchanged.
    """
    try:
        yield
    except LinkServiceError:
        await db.rollback()
        raise
    except (SQLAlchemyError, OSError, StorageError) as e:
        await db.rollback()
        logger.error(f"Store failure while {action}: {e}", exc_info=True)
        raise StorageFailedError() from e


# ============================================
# Issuing
# ============================================


async def issue_link(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
    *,
    base_url: str,
    now: datetime | None = None,
) -> IssuedLink:
    """
    Issue a new link for a subject, deactivating any previous one.

    Args:
        db: Database session
        workflow: Workflow whose tables are used
        subject_id: Client or candidate ID
        base_url: Public base URL the link points at
        now: Issue time (defaults to the current UTC time)

    Returns:
        The new link, its subject and its public URL

    Raises:
        SubjectNotFoundError: If the subject does not exist
        StorageFailedError: If the store fails
    """
    now = now or _utcnow()

    async with _store_operation(db, f"issuing {workflow.name} link"):
        subject = await repository.get_subject(db, workflow, subject_id, for_update=True)
        if subject is None:
            raise SubjectNotFoundError(workflow.subject_label)

        link = await repository.replace_active_link(
            db, workflow, subject_id, generate_link_token(), now
        )

    logger.info(
        f"Issued {workflow.name} link {link.id} for {workflow.subject_label} {subject_id}, "
        f"expires {link.expires_at.isoformat()}"
    )

    return IssuedLink(link=link, subject=subject, url=workflow.build_url(base_url, link.token))


# ============================================
# Access Gate
# ============================================


async def resolve_link(
    db: AsyncSession,
    workflow: LinkWorkflow,
    token: str,
    *,
    now: datetime | None = None,
) -> LinkResolution:
    """
    Resolve a presented token to its subject and completion state. Read-only.

    Raises:
        InvalidOrExpiredLinkError: If the token is unknown, or neither
            completed nor usable
        StorageFailedError: If the store fails
    """
    now = now or _utcnow()

    async with _store_operation(db, f"resolving {workflow.name} link"):
        link = await repository.get_link_by_token(db, workflow, token)
        if link is None or not is_link_readable(link, now):
            raise InvalidOrExpiredLinkError()

        subject = await repository.get_subject(db, workflow, link.subject_id)
        if subject is None:
            raise InvalidOrExpiredLinkError()

        outcome = await repository.get_outcome_for_subject(db, workflow, link.subject_id)

    return LinkResolution(link=link, subject=subject, outcome=outcome)


# ============================================
# Completion
# ============================================


async def complete_link(
    db: AsyncSession,
    workflow: LinkWorkflow,
    token: str,
    build_outcome: BuildOutcome,
    *,
    before_commit: BeforeCommit | None = None,
    now: datetime | None = None,
) -> Any:
    """
    Record the one completion a subject allows.

    ``build_outcome(subject, link, now)`` returns the unsaved outcome row.
    ``before_commit(outcome)`` runs after every database check passed and
    before the commit; it is where an upload is moved into permanent storage.
    If it raises, nothing is committed.

    The subject row is locked before the token row, as in ``issue_link``, so
    a completion racing a re-issue for the same subject waits instead of
    deadlocking.

    Raises:
        InvalidOrExpiredLinkError: Token unknown, deactivated or expired
        AlreadyCompletedError: Token or subject already completed
        StorageFailedError: The store failed; nothing was recorded
    """
    now = now or _utcnow()

    async with _store_operation(db, f"completing {workflow.name} link"):
        link = await repository.get_link_by_token(db, workflow, token)
        if link is None:
            raise InvalidOrExpiredLinkError()
        subject_id = link.subject_id

        # Subject row first, then the link row, the same order issue_link locks in
        subject = await repository.get_subject(db, workflow, subject_id, for_update=True)
        if subject is None:
            raise InvalidOrExpiredLinkError()

        link = await repository.get_link_by_token(db, workflow, token, for_update=True)
        if link is None:
            raise InvalidOrExpiredLinkError()
        if link.completed:
            raise AlreadyCompletedError(workflow.already_completed_message)
        if not is_link_usable(link, now):
            raise InvalidOrExpiredLinkError()

        if await repository.get_outcome_for_subject(db, workflow, subject_id) is not None:
            raise AlreadyCompletedError(workflow.already_completed_message)

        link_id = link.id
        outcome = build_outcome(subject, link, now)

        try:
            await repository.record_completion(db, workflow, link, outcome)
        except repository.OutcomeConflictError as e:
            # Rollback expires every loaded row; only the ids read above are safe here
            await db.rollback()
            # A concurrent completion won; anything else is a store failure
            if await repository.get_outcome_for_subject(db, workflow, subject_id) is not None:
                raise AlreadyCompletedError(workflow.already_completed_message) from e
            logger.error(f"Unexpected conflict completing {workflow.name} link {link_id}: {e}")
            raise StorageFailedError() from e

        if before_commit is not None:
            await before_commit(outcome)

        await db.commit()
        await db.refresh(outcome)

    logger.info(
        f"Completed {workflow.name} link {link_id} for {workflow.subject_label} "
        f"{subject_id}: {workflow.outcome_ref(outcome)}"
    )

    return outcome


# ============================================
# Admin Control
# ============================================


async def set_link_active(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
    active: bool,
    *,
    now: datetime | None = None,
) -> Any:
    """
    Activate or deactivate a subject's most recent link.

    Raises:
        LinkNotFoundError: If the subject has no link, or it has expired
        StorageFailedError: If the store fails
    """
    now = now or _utcnow()

    async with _store_operation(db, f"toggling {workflow.name} link"):
        link = await repository.get_current_link(db, workflow, subject_id, for_update=True)
        if link is None or now >= link.expires_at:
            raise LinkNotFoundError(workflow.subject_label)

        link = await repository.set_link_active(db, link, active)

    logger.info(
        f"{'Activated' if active else 'Deactivated'} {workflow.name} link {link.id} "
        f"for {workflow.subject_label} {subject_id}"
    )

    return link
