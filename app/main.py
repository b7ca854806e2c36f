# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the KSupervision API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   poetry run uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    SupervisionException,
    supervision_exception_handler,
)
from app.routers import health, users, stores, products, routes, forms, visit_logs, workgroups, places
from app.auth import routes as auth_routes
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: Log configuration, warn about missing optional keys
    - Shutdown: Log
    """
    # Startup
    logger.info(f"Starting KSupervision API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; directions and place lookups will fail")

    yield

    # Shutdown
    logger.info("Shutting down KSupervision API")


# Create FastAPI application
app = FastAPI(
    title="KSupervision API",
    description="""
## Retail Field Supervision API

Back office for supervising field visits to retail stores.

### How It Works

1. **Stores** - Administrators load stores (one by one or from an Excel workbook)
2. **Forms** - Administrators design checklists with compliance rules and publish them
3. **Routes** - Stores are grouped into routes with a weekly work plan and driving directions
4. **Visit Logs** - Field users fill the active checklist at each store; answers are graded
   and a weighted compliance score is stored

### Roles

| Role | Access |
|------|--------|
| **admin** | Everything |
| **supervisor** | Reads, visit logs; leads a workgroup |
| **usuario** | Reads, visit logs |

### Quick Start

```bash
# 1. Log in
curl -X POST http://localhost:8000/api/v1/auth/login \\
  -H "Content-Type: application/json" \\
  -d '{"cedula": "000000001", "password": "Admin123!"}'

# 2. Find the active form for a store
curl http://localhost:8000/api/v1/forms/active?store_id={id} \\
  -H "Authorization: Bearer {token}"

# 3. Submit a visit
curl -X POST http://localhost:8000/api/v1/visit-logs \\
  -H "Authorization: Bearer {token}" \\
  -H "Content-Type: application/json" \\
  -d '{"store_id": "{id}", "form_template_id": "{form}", "answers": [{"question_id": "q1", "value": true}]}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Login and token verification",
        },
        {
            "name": "Users",
            "description": "User management",
        },
        {
            "name": "Stores",
            "description": "Stores, Excel import/export and backups",
        },
        {
            "name": "Products",
            "description": "Product catalogue and photos",
        },
        {
            "name": "Routes",
            "description": "Routes, weekly work plans and driving directions",
        },
        {
            "name": "Forms",
            "description": "Visit checklist templates",
        },
        {
            "name": "Visit Logs",
            "description": "Visit submissions, compliance scores and history",
        },
        {
            "name": "Workgroups",
            "description": "Supervisor workgroups",
        },
        {
            "name": "Places",
            "description": "Google Places lookups for geocoding stores",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(SupervisionException)
async def handle_supervision_exception(request: Request, exc: SupervisionException):
    """Handle custom Supervision exceptions."""
    return await supervision_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_database_exception(request: Request, exc: SupabaseClientError):
    """Handle database failures raised by the Supabase wrapper."""
    logger.error(f"Database error: {exc}")
    content = {
        "detail": "A database error occurred",
        "code": exc.code,
    }
    if exc.suggestion:
        content["suggestion"] = exc.suggestion
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# User management endpoints
app.include_router(
    users.router,
    prefix="/api/v1/users",
    tags=["Users"]
)

# Store endpoints (CRUD, Excel import/export, backups)
app.include_router(
    stores.router,
    prefix="/api/v1/stores",
    tags=["Stores"]
)

# Product endpoints
app.include_router(
    products.router,
    prefix="/api/v1/products",
    tags=["Products"]
)

# Route endpoints
app.include_router(
    routes.router,
    prefix="/api/v1/routes",
    tags=["Routes"]
)

# Form template endpoints
app.include_router(
    forms.router,
    prefix="/api/v1/forms",
    tags=["Forms"]
)

app.include_router(
    forms.templates_router,
    prefix="/api/v1/form-templates",
    tags=["Forms"]
)

# Visit log endpoints
app.include_router(
    visit_logs.router,
    prefix="/api/v1/visit-logs",
    tags=["Visit Logs"]
)

# Workgroup endpoints
app.include_router(
    workgroups.router,
    prefix="/api/v1/workgroups",
    tags=["Workgroups"]
)

# Google Places endpoints
app.include_router(
    places.router,
    prefix="/api/v1/places",
    tags=["Places"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "KSupervision API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
