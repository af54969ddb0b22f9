"""
Access Link Models

Column mixins shared by every token-gated workflow. Each workflow declares its
own link table and outcome table with these mixins, so the link engine can
operate on any of them through the same attribute names:

- ``AccessLinkMixin``: the token store (token, active, expiry, completion).
- ``SubjectOutcomeMixin``: the one-per-subject artifact a completion records.

Concrete classes set ``__subject_table__`` (referenced table) and
``__subject_column__`` (database column name of the foreign key). The mapped
attribute is always ``subject_id``.
"""

import uuid
from datetime import datetime
from typing import ClassVar

from sqlalchemy import Boolean, DateTime, ForeignKey, String, false, func, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, declared_attr, mapped_column


class AccessLinkMixin:
    """
    A single-use, time-boxed access token bound to one subject.

    A link is usable while ``active`` is set and ``expires_at`` lies in the
    future. ``completed`` flips to True once, when the holder's action is
    recorded, and never flips back.
    """

    __subject_table__: ClassVar[str]
    __subject_column__: ClassVar[str]

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    # Payment reference id or upload id, set together with ``completed``
    outcome_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @declared_attr
    def subject_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            cls.__subject_column__,
            UUID(as_uuid=True),
            ForeignKey(f"{cls.__subject_table__}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class SubjectOutcomeMixin:
    """The artifact recorded by a completion. Exactly one per subject."""

    __subject_table__: ClassVar[str]
    __subject_column__: ClassVar[str]
    __subject_ondelete__: ClassVar[str] = "CASCADE"

    @declared_attr
    def subject_id(cls) -> Mapped[uuid.UUID]:
        # unique: the store rejects a second outcome for the same subject
        return mapped_column(
            cls.__subject_column__,
            UUID(as_uuid=True),
            ForeignKey(f"{cls.__subject_table__}.id", ondelete=cls.__subject_ondelete__),
            nullable=False,
            unique=True,
        )
