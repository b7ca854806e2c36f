# =============================================================================
# tests/test_utils.py - Utility Tests
# =============================================================================

from datetime import datetime, timedelta, timezone
from uuid import UUID

from lib.utils import (
    day_bounds,
    dedupe,
    escape_search_term,
    is_valid_uuid,
    normalize_uuid,
    parse_datetime,
    sanitize_string,
    strip_accents,
    to_iso,
)


class TestUuidHelpers:
    """Tests for UUID helpers."""

    def test_is_valid_uuid(self):
        assert is_valid_uuid("550e8400-e29b-41d4-a716-446655440000") is True
        assert is_valid_uuid(UUID("550e8400-e29b-41d4-a716-446655440000")) is True
        assert is_valid_uuid("not-a-uuid") is False
        assert is_valid_uuid("") is False
        assert is_valid_uuid(None) is False

    def test_normalize_uuid(self):
        value = UUID("550e8400-e29b-41d4-a716-446655440000")
        assert normalize_uuid(value) == "550e8400-e29b-41d4-a716-446655440000"
        assert normalize_uuid("abc") == "abc"


class TestStringHelpers:
    """Tests for string helpers."""

    def test_sanitize_string(self):
        assert sanitize_string("  hola ") == "hola"
        assert sanitize_string(None) == ""
        assert sanitize_string(12) == "12"

    def test_strip_accents(self):
        assert strip_accents("Cantón José Ñ") == "Canton Jose N"

    def test_escape_search_term(self):
        assert escape_search_term(" 1.5, (sur) ") == "1.5, (sur)"
        assert escape_search_term("pali*%") == "pali"
        assert escape_search_term('dice "hola" a\\b') == 'dice \\"hola\\" a\\\\b'

    def test_dedupe_keeps_first_occurrence(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


class TestTimeHelpers:
    """Tests for timestamp helpers."""

    def test_parse_zulu_timestamp(self):
        parsed = parse_datetime("2024-03-05T10:00:00Z")
        assert parsed == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)

    def test_naive_values_are_utc(self):
        parsed = parse_datetime("2024-03-05T10:00:00")
        assert parsed.tzinfo == timezone.utc

    def test_offsets_are_converted_to_utc(self):
        parsed = parse_datetime("2024-03-05T22:30:00-06:00")
        assert parsed == datetime(2024, 3, 6, 4, 30, tzinfo=timezone.utc)

    def test_unparseable_values(self):
        assert parse_datetime("yesterday") is None
        assert parse_datetime("") is None
        assert parse_datetime(42) is None
        assert to_iso(None) is None

    def test_day_bounds(self):
        moment = datetime(2024, 3, 5, 22, 30, tzinfo=timezone(timedelta(hours=-6)))

        start, end = day_bounds(moment)

        assert start == datetime(2024, 3, 6, tzinfo=timezone.utc)
        assert end == datetime(2024, 3, 6, 23, 59, 59, 999999, tzinfo=timezone.utc)
