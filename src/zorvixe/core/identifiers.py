"""
Reference Codes

Human-readable identifiers shown to admins, clients and candidates. These are
labels, not secrets: uniqueness is enforced by database constraints and the
access tokens are generated separately in the links module.
"""

import secrets
import string
import time
from datetime import UTC, datetime

ALPHANUMERIC = string.ascii_uppercase + string.digits


def _random_code(length: int) -> str:
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))


def _timestamp_digits() -> str:
    """Last six digits of the current epoch time in milliseconds."""
    return str(time.time_ns() // 1_000_000)[-6:]


def generate_project_id() -> str:
    """PRJ-<6 digits>-<4 alnum>, e.g. PRJ-482913-K2QX."""
    return f"PRJ-{_timestamp_digits()}-{_random_code(4)}"


def generate_zorvixe_id() -> str:
    """ZOR-<6 alnum>, e.g. ZOR-7HD2LM."""
    return f"ZOR-{_random_code(6)}"


def generate_candidate_code() -> str:
    """CAN-<6 digits>-<4 alnum>, e.g. CAN-104233-AB12."""
    return f"CAN-{_timestamp_digits()}-{_random_code(4)}"


def generate_payment_reference(now: datetime | None = None) -> str:
    """PAY-<year>-<6 alnum>, e.g. PAY-2026-Q8ZK1B."""
    year = (now or datetime.now(UTC)).year
    return f"PAY-{year}-{_random_code(6)}"
