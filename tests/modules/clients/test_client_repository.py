"""
Unit tests for the clients repository queries.

These tests cover:
- Payment search treats LIKE wildcards in admin input literally
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from zorvixe.modules.clients.repository import _contains_pattern, search_payments


class TestContainsPattern:
    """Tests for the search pattern builder."""

    def test_plain_text_is_wrapped(self):
        assert _contains_pattern("acme") == "%acme%"

    def test_wildcards_are_escaped(self):
        assert _contains_pattern("___") == r"%\_\_\_%"
        assert _contains_pattern("50%") == r"%50\%%"

    def test_backslash_is_escaped_first(self):
        assert _contains_pattern(r"a\_b") == r"%a\\\_b%"


@pytest.mark.asyncio
class TestSearchPayments:
    """Tests for search_payments."""

    async def test_underscores_do_not_match_everything(self, mock_db):
        mock_db.execute = AsyncMock(return_value=MagicMock(all=MagicMock(return_value=[])))

        assert await search_payments(mock_db, "___") == []

        stmt = mock_db.execute.call_args.args[0]
        compiled = stmt.compile(dialect=postgresql.dialect())
        patterns = {value for value in compiled.params.values() if isinstance(value, str)}

        assert patterns == {r"%\_\_\_%"}
        # One ESCAPE clause per searched column
        assert str(compiled).count("ESCAPE") == 5
