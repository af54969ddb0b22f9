"""
Fixtures for clients tests.
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from zorvixe.modules.clients.models import (
    Client,
    ClientLink,
    ClientStatus,
    PaymentRegistration,
    PaymentStatus,
)


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
    return datetime(2026, 5, 4, 10, 30, tzinfo=UTC)


@pytest.fixture
def sample_client(now):
    """A client awaiting payment."""
    client = MagicMock(spec=Client)
    client.id = uuid4()
    client.name = "Ravi Kumar"
    client.email = "ravi@example.com"
    client.phone = "9876543210"
    client.company = "Kumar Textiles"
    client.project_name = "Inventory Portal"
    client.project_description = "Stock tracking for three warehouses"
    client.project_id = "PRJ-482913-K2QX"
    client.zorvixe_id = "ZOR-7HD2LM"
    client.payment_amount = Decimal("45000.00")
    client.status = ClientStatus.PENDING
    client.created_at = now - timedelta(days=1)
    client.updated_at = now - timedelta(days=1)
    return client


@pytest.fixture
def sample_link(sample_client, now):
    link = MagicMock(spec=ClientLink)
    link.id = uuid4()
    link.subject_id = sample_client.id
    link.token = "tok_" + "a" * 39
    link.active = True
    link.completed = False
    link.created_at = now
    link.expires_at = now + timedelta(days=30)
    return link


@pytest.fixture
def sample_payment(sample_client, now):
    """A stored payment registration."""
    payment = MagicMock(spec=PaymentRegistration)
    payment.id = uuid4()
    payment.subject_id = sample_client.id
    payment.client_name = sample_client.name
    payment.project_name = sample_client.project_name
    payment.project_id = sample_client.project_id
    payment.zorvixe_id = sample_client.zorvixe_id
    payment.project_description = sample_client.project_description
    payment.amount = sample_client.payment_amount
    payment.due_date = date(2026, 5, 11)
    payment.receipt_url = "https://drive.example.com/receipt/123"
    payment.reference_id = "PAY-2026-Q8ZK1B"
    payment.status = PaymentStatus.PENDING
    payment.created_at = now
    payment.updated_at = now
    return payment
