# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness, readiness and version info for monitoring. Readiness probes the
# users table and the product image bucket, and reports whether the Google
# Maps key is configured.
# =============================================================================

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """One entry per dependency: healthy, unhealthy: <reason>, or configured."""
    database: str = "unknown"
    product_images: str = "unknown"
    google_maps: str = "not configured"


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _failure(e: Exception) -> str:
    return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=utc_now_iso(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Probe Supabase before taking traffic.

    status is "ready" when the users table and the product image bucket
    answer. A missing Google Maps key shows up in checks but leaves the
    status untouched: only multi-store routes and place lookups need it.
    """
    checks = ChecksResponse()
    if settings.GOOGLE_MAPS_API_KEY:
        checks.google_maps = "configured"

    try:
        SupabaseClient.fetch_rows("users", columns="id", limit=1)
        checks.database = "healthy"
    except Exception as e:
        checks.database = _failure(e)

    try:
        SupabaseClient.get_client().storage.get_bucket(settings.PRODUCT_IMAGES_BUCKET)
        checks.product_images = "healthy"
    except Exception as e:
        checks.product_images = _failure(e)

    ready = checks.database == "healthy" and checks.product_images == "healthy"

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=utc_now_iso(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """The process is up; no dependency is touched."""
    return LivenessResponse(status="alive", timestamp=utc_now_iso())
