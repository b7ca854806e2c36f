# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - compliance.py: Grading of visit answers and weighted compliance scores
# - route_planning.py: Weekly work plan normalization and visit stats
# - google_maps.py: Directions and Places web service calls
# - store_excel.py: Store workbook parsing and export
# - passwords.py: bcrypt hashing helpers
# - utils.py: Shared utilities (UUIDs, strings, timestamps)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import is_valid_uuid, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "is_valid_uuid",
    "normalize_uuid",
]
