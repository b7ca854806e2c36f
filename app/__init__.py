# =============================================================================
# app/ - KSupervision HTTP Layer
# =============================================================================
# FastAPI application for the field supervision back office:
# - main.py: app instance, CORS, exception handlers, router mounting
# - config.py: settings for Supabase, Google Maps, tokens and upload limits
# - auth/: cedula + password login, bearer tokens, role guards
# - routers/: one router per resource (stores, routes, forms, visit logs, ...)
#
# Handlers validate input and enforce roles; grading, route planning and
# persistence live in core/ and lib/.
# =============================================================================
