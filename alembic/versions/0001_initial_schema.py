"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 12:00:00.000000

Creates every table of the service:
1. contacts - website contact form submissions
2. clients, client_links, payment_registrations, payment_links - payment workflow
3. candidates, candidate_links, candidate_uploads - onboarding workflow

Single-completion guarantees enforced by the schema:
- payment_registrations.client_id and candidate_uploads.candidate_id are unique
  (one outcome per subject)
- Partial unique indexes allow at most one active link per subject
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Enum labels are the member names, as SQLAlchemy's Enum type stores them
client_status = postgresql.ENUM(
    "PENDING", "PAYMENT_SUBMITTED", name="client_status", create_type=False
)
payment_status = postgresql.ENUM(
    "PENDING", "VERIFIED", "REJECTED", name="payment_status", create_type=False
)
candidate_status = postgresql.ENUM(
    "PENDING",
    "DOCUMENTS_UPLOADED",
    "APPROVED",
    "REJECTED",
    name="candidate_status",
    create_type=False,
)
upload_status = postgresql.ENUM("UPLOADED", name="upload_status", create_type=False)

ENUMS = (client_status, payment_status, candidate_status, upload_status)


def _timestamps(*, with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        )
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return columns


def _link_table(name: str, subject_table: str, subject_column: str) -> None:
    op.create_table(
        name,
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(length=100), nullable=False),
        sa.Column(subject_column, postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("outcome_ref", sa.String(length=64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint([subject_column], [f"{subject_table}.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index(f"ix_{name}_{subject_column}", name, [subject_column])
    # At most one active link per subject
    op.create_index(
        f"uq_{name}_active_{subject_table[:-1]}",
        name,
        [subject_column],
        unique=True,
        postgresql_where=sa.text("active"),
    )


def upgrade() -> None:
    """Create all tables, enum types and indexes."""
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    # Contacts
    op.create_table(
        "contacts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contacts_created_at", "contacts", ["created_at"])

    # Payment workflow
    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=True),
        sa.Column("project_name", sa.String(length=200), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("project_id", sa.String(length=32), nullable=False),
        sa.Column("zorvixe_id", sa.String(length=16), nullable=False),
        sa.Column("payment_amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("status", client_status, server_default="PENDING", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id"),
        sa.UniqueConstraint("zorvixe_id"),
    )
    op.create_index("ix_clients_created_at", "clients", ["created_at"])

    _link_table("client_links", "clients", "client_id")

    op.create_table(
        "payment_registrations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_name", sa.String(length=200), nullable=False),
        sa.Column("project_name", sa.String(length=200), nullable=False),
        sa.Column("project_id", sa.String(length=32), nullable=False),
        sa.Column("zorvixe_id", sa.String(length=16), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("receipt_url", sa.String(length=1000), nullable=False),
        sa.Column("reference_id", sa.String(length=32), nullable=False),
        sa.Column("status", payment_status, server_default="PENDING", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_id"),
        sa.UniqueConstraint("reference_id"),
    )
    op.create_index("ix_payment_registrations_status", "payment_registrations", ["status"])
    op.create_index(
        "ix_payment_registrations_created_at", "payment_registrations", ["created_at"]
    )

    op.create_table(
        "payment_links",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(length=100), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )

    # Onboarding workflow
    op.create_table(
        "candidates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("position", sa.String(length=200), nullable=False),
        sa.Column("candidate_code", sa.String(length=32), nullable=False),
        sa.Column("status", candidate_status, server_default="PENDING", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("candidate_code"),
    )
    op.create_index("ix_candidates_created_at", "candidates", ["created_at"])

    _link_table("candidate_links", "candidates", "candidate_id")

    op.create_table(
        "candidate_uploads",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("candidate_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("status", upload_status, server_default="UPLOADED", nullable=False),
        sa.Column(
            "upload_date",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["candidate_id"], ["candidates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("candidate_id"),
    )


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table("candidate_uploads")
    op.drop_table("candidate_links")
    op.drop_table("candidates")
    op.drop_table("payment_links")
    op.drop_table("payment_registrations")
    op.drop_table("client_links")
    op.drop_table("clients")
    op.drop_table("contacts")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
