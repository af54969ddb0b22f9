"""
Clients Models

Database models for the client payment-registration workflow: clients, their
payment links, the payment registrations those links produce, and the
standalone bootstrap payment link.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Index,
    Numeric,
    String,
    Text,
    func,
    text,
    true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from zorvixe.core.database import Base
from zorvixe.modules.links.models import AccessLinkMixin, SubjectOutcomeMixin


class ClientStatus(str, enum.Enum):
    """Where a client stands in the payment workflow."""

    PENDING = "pending"
    PAYMENT_SUBMITTED = "payment_submitted"


class PaymentStatus(str, enum.Enum):
    """Administrative review state of a payment registration."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Client(Base):
    """A client whose project payment is registered through a link."""

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Contact
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Project
    project_name: Mapped[str] = mapped_column(String(200), nullable=False)
    project_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    zorvixe_id: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[ClientStatus] = mapped_column(
        Enum(ClientStatus, name="client_status"),
        nullable=False,
        default=ClientStatus.PENDING,
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

    __table_args__ = (Index("ix_clients_created_at", "created_at"),)


class ClientLink(AccessLinkMixin, Base):
    """Payment-registration link. Valid for 30 days."""

    __tablename__ = "client_links"
    __subject_table__ = "clients"
    __subject_column__ = "client_id"

    # At most one active link per client
    __table_args__ = (
        Index(
            "uq_client_links_active_client",
            "client_id",
            unique=True,
            postgresql_where=text("active"),
        ),
    )


class PaymentRegistration(SubjectOutcomeMixin, Base):
    """
    A client's payment registration.

    Client, project and amount fields are copied from the client when the
    registration is recorded, so later edits to the client do not rewrite it.
    """

    __tablename__ = "payment_registrations"
    __subject_table__ = "clients"
    __subject_column__ = "client_id"
    __subject_ondelete__ = "RESTRICT"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    project_name: Mapped[str] = mapped_column(String(200), nullable=False)
    project_id: Mapped[str] = mapped_column(String(32), nullable=False)
    zorvixe_id: Mapped[str] = mapped_column(String(16), nullable=False)
    project_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    receipt_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    reference_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
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

    __table_args__ = (
        Index("ix_payment_registrations_status", "status"),
        Index("ix_payment_registrations_created_at", "created_at"),
    )


class PaymentLink(Base):
    """
    Standalone payment link seeded at start-up.

    Not bound to a client; the public site only checks that it exists.
    """

    __tablename__ = "payment_links"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
