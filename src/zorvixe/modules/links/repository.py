"""
Access Link Repository

Database operations for the token store, shared by every workflow. Functions
take the ``LinkWorkflow`` whose tables they operate on.

Transaction boundaries:
- ``replace_active_link``, ``set_link_active`` and ``mark_reminder_sent`` commit.
- ``record_completion`` only flushes; the caller commits (or rolls back) the
  completion as one unit.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .workflow import LinkWorkflow


class OutcomeConflictError(Exception):
    """The store refused a second completion for the same subject."""


async def get_subject(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
    *,
    for_update: bool = False,
) -> Any | None:
    """Get a subject by ID, optionally locking its row for the transaction."""
    subject_model = workflow.subject_model
    stmt = select(subject_model).where(subject_model.id == subject_id)
    if for_update:
        stmt = stmt.with_for_update()

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def replace_active_link(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
    token: str,
    now: datetime,
) -> Any:
    """
    Deactivate every active link of the subject and insert a new active one.

    Both writes are committed together. Callers lock the subject row first
    (``get_subject(..., for_update=True)``) so concurrent issuing for the same
    subject is serialized.
    """
    link_model = workflow.link_model

    await db.execute(
        update(link_model)
        .where(link_model.subject_id == subject_id, link_model.active.is_(True))
        .values(active=False)
    )

    new_link = link_model(
        subject_id=subject_id,
        token=token,
        active=True,
        completed=False,
        created_at=now,
        expires_at=now + workflow.ttl,
    )
    db.add(new_link)
    await db.commit()
    await db.refresh(new_link)

    return new_link


async def get_link_by_token(
    db: AsyncSession,
    workflow: LinkWorkflow,
    token: str,
    *,
    for_update: bool = False,
) -> Any | None:
    """Get a link by exact token match."""
    link_model = workflow.link_model
    stmt = select(link_model).where(link_model.token == token)
    if for_update:
        stmt = stmt.with_for_update()

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_current_link(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
    *,
    for_update: bool = False,
) -> Any | None:
    """Get the most recently issued link of a subject."""
    link_model = workflow.link_model
    stmt = (
        select(link_model)
        .where(link_model.subject_id == subject_id)
        .order_by(link_model.created_at.desc())
        .limit(1)
    )
    if for_update:
        stmt = stmt.with_for_update()

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def set_link_active(db: AsyncSession, link: Any, active: bool) -> Any:
    """Set a link's active flag."""
    link.active = active

    await db.commit()
    await db.refresh(link)

    return link


async def get_outcome_for_subject(
    db: AsyncSession,
    workflow: LinkWorkflow,
    subject_id: UUID,
) -> Any | None:
    """Get the recorded outcome of a subject, if any."""
    outcome_model = workflow.outcome_model
    result = await db.execute(select(outcome_model).where(outcome_model.subject_id == subject_id))
    return result.scalar_one_or_none()


async def record_completion(
    db: AsyncSession,
    workflow: LinkWorkflow,
    link: Any,
    outcome: Any,
) -> None:
    """
    Stage the three completion writes in the current transaction.

    1. Insert the outcome (unique per subject).
    2. Mark the link completed, only if it is not completed yet.
    3. Set the subject's status to the workflow's completed label.

    Nothing is committed here.

    Raises:
        OutcomeConflictError: If the outcome insert violates a constraint or
            the link was completed concurrently
    """
    link_model = workflow.link_model
    subject_model = workflow.subject_model

    db.add(outcome)
    try:
        await db.flush()
    except IntegrityError as e:
        raise OutcomeConflictError(str(e.orig)) from e

    result = await db.execute(
        update(link_model)
        .where(link_model.id == link.id, link_model.completed.is_(False))
        .values(completed=True, outcome_ref=workflow.outcome_ref(outcome))
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise OutcomeConflictError(f"Link {link.id} was already completed")

    await db.execute(
        update(subject_model)
        .where(subject_model.id == link.subject_id)
        .values(status=workflow.completed_status)
        .execution_options(synchronize_session="fetch")
    )


# ============================================
# Background Job Queries
# ============================================


async def get_links_needing_reminder(
    db: AsyncSession,
    workflow: LinkWorkflow,
    now: datetime,
    expires_before: datetime,
) -> list[tuple[Any, Any]]:
    """
    Get usable, not yet completed links that expire before ``expires_before``
    and have not been reminded, together with their subject.

    Subjects that already have an outcome are skipped.
    """
    link_model = workflow.link_model
    subject_model = workflow.subject_model
    outcome_model = workflow.outcome_model

    result = await db.execute(
        select(link_model, subject_model)
        .join(subject_model, subject_model.id == link_model.subject_id)
        .outerjoin(outcome_model, outcome_model.subject_id == link_model.subject_id)
        .where(
            link_model.active.is_(True),
            link_model.completed.is_(False),
            link_model.reminder_sent_at.is_(None),
            link_model.expires_at > now,
            link_model.expires_at <= expires_before,
            outcome_model.id.is_(None),
        )
    )
    return [(row[0], row[1]) for row in result.all()]


async def mark_reminder_sent(
    db: AsyncSession,
    workflow: LinkWorkflow,
    link_id: UUID,
    sent_at: datetime,
) -> bool:
    """
    Claim a link's reminder by setting ``reminder_sent_at`` if it is unset.

    Returns:
        True if this call claimed the reminder, False if another worker did
    """
    link_model = workflow.link_model

    result = await db.execute(
        update(link_model)
        .where(link_model.id == link_id, link_model.reminder_sent_at.is_(None))
        .values(reminder_sent_at=sent_at)
    )
    await db.commit()

    return result.rowcount == 1
