# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the KSupervision API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_compliance.py, test_route_planning.py: Pure grading and planning logic
# - test_*_service.py: Services with SupabaseClient patched
# - test_supabase_client.py: Filters built by the Supabase wrapper
# - test_api.py: HTTP tests through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
