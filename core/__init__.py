# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for data validation
# - services/: Table access and business rules, one service per entity
#
# Services raise app.exceptions errors but never import FastAPI, which
# keeps them testable with a patched SupabaseClient.
# =============================================================================
