# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common helpers used across services: identifiers, strings, timestamps.
# =============================================================================

import re
import unicodedata
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        store_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        store_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def is_valid_uuid(value: Any) -> bool:
    """Return True when value is a UUID or a string that parses as one."""
    if isinstance(value, UUID):
        return True
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        UUID(value.strip())
    except ValueError:
        return False
    return True


def new_id() -> str:
    return str(uuid4())


def new_hex_id() -> str:
    """Short identifier for embedded items (questions, options)."""
    return uuid4().hex


# =============================================================================
# String Utilities
# =============================================================================

def sanitize_string(value: Any) -> str:
    """Trim a value to a string; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def strip_accents(value: str) -> str:
    normalized = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")


def escape_search_term(term: str) -> str:
    """
    Prepare a free-text search term for a quoted PostgREST ``or`` filter value.

    Backslashes and double quotes are backslash-escaped; ``*`` and ``%`` are
    dropped since ILIKE would read them as wildcards. Commas, dots and
    parentheses are kept and matched literally inside the quotes.
    """
    term = re.sub(r"[*%]", "", term)
    return term.replace("\\", "\\\\").replace('"', '\\"').strip()


def dedupe(values: list[Any]) -> list[Any]:
    """Remove duplicates while keeping the first occurrence order."""
    seen: set[Any] = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Naive values are treated as UTC. Returns None when the value
    cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Any) -> str | None:
    """Serialize a datetime (or ISO string) to a UTC ISO-8601 string."""
    parsed = parse_datetime(value)
    return parsed.isoformat() if parsed else None


def day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Return the first and last instants of the UTC calendar day of moment."""
    start = moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    end = start.replace(hour=23, minute=59, second=59, microsecond=999999)
    return start, end
