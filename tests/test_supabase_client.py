# =============================================================================
# tests/test_supabase_client.py - Supabase Wrapper Tests
# =============================================================================
# Tests for the filters fetch_rows builds on the PostgREST query, with the
# underlying client replaced by a MagicMock.
# =============================================================================

from unittest.mock import MagicMock, patch

from lib.supabase_client import SupabaseClient
from lib.utils import escape_search_term


def mock_client():
    client = MagicMock()
    query = client.table.return_value.select.return_value
    query.execute.return_value.data = []
    return client, query


class TestFetchRowsSearch:
    """Tests for the ILIKE search filter."""

    def test_search_value_is_quoted(self):
        client, query = mock_client()

        with patch.object(SupabaseClient, "get_client", return_value=client):
            SupabaseClient.fetch_rows(
                "products",
                search=escape_search_term("1.5, (300 g)"),
                search_columns=["name", "upc_code"],
            )

        query.or_.assert_called_once_with(
            'name.ilike."*1.5, (300 g)*",upc_code.ilike."*1.5, (300 g)*"'
        )

    def test_double_quotes_are_escaped(self):
        client, query = mock_client()

        with patch.object(SupabaseClient, "get_client", return_value=client):
            SupabaseClient.fetch_rows(
                "stores",
                search=escape_search_term('Pali "Sur"'),
                search_columns=["name"],
            )

        query.or_.assert_called_once_with('name.ilike."*Pali \\"Sur\\"*"')

    def test_no_search_no_filter(self):
        client, query = mock_client()

        with patch.object(SupabaseClient, "get_client", return_value=client):
            assert SupabaseClient.fetch_rows("stores", search_columns=["name"]) == []

        query.or_.assert_not_called()
