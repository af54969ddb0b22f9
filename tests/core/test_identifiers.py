"""
Unit tests for generated reference codes.
"""

import re
from datetime import UTC, datetime

from zorvixe.core.identifiers import (
    generate_candidate_code,
    generate_payment_reference,
    generate_project_id,
    generate_zorvixe_id,
)


class TestReferenceCodes:
    """Tests for reference code formats."""

    def test_project_id(self):
        assert re.fullmatch(r"PRJ-\d{6}-[A-Z0-9]{4}", generate_project_id())

    def test_zorvixe_id(self):
        assert re.fullmatch(r"ZOR-[A-Z0-9]{6}", generate_zorvixe_id())

    def test_candidate_code(self):
        assert re.fullmatch(r"CAN-\d{6}-[A-Z0-9]{4}", generate_candidate_code())

    def test_payment_reference_uses_year(self):
        reference = generate_payment_reference(datetime(2027, 1, 1, tzinfo=UTC))
        assert re.fullmatch(r"PAY-2027-[A-Z0-9]{6}", reference)

    def test_zorvixe_ids_vary(self):
        assert len({generate_zorvixe_id() for _ in range(20)}) > 1
