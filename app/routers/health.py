# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# Readiness covers the database, the media bucket and the rate-limit
# counter store.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from app.dependencies import SupabaseDep
from lib.rate_limit import RedisCounterStore, get_counter_store
from lib.supabase_client import LISTINGS_TABLE

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """Individual dependency checks."""
    database: str
    storage: str
    rate_limiter: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _unhealthy(e: Exception) -> str:
    return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(supabase: SupabaseDep):
    """
    Readiness check endpoint.

    "degraded" when any dependency check fails; the process keeps serving.
    """
    checks = ChecksResponse(database="unknown", storage="unknown", rate_limiter="unknown")

    try:
        client = supabase.get_client()
        client.table(LISTINGS_TABLE).select("id").limit(1).execute()
        checks.database = "healthy"
    except Exception as e:
        checks.database = _unhealthy(e)

    try:
        supabase.get_client().storage.get_bucket(settings.STORAGE_BUCKET)
        checks.storage = "healthy"
    except Exception as e:
        checks.storage = _unhealthy(e)

    store = get_counter_store()
    if isinstance(store, RedisCounterStore):
        try:
            store.ping()
            checks.rate_limiter = "healthy"
        except Exception as e:
            checks.rate_limiter = _unhealthy(e)
    else:
        checks.rate_limiter = f"healthy ({settings.RATE_LIMIT_BACKEND})"

    all_healthy = all(
        value.startswith("healthy")
        for value in (checks.database, checks.storage, checks.rate_limiter)
    )

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live")
async def liveness_check():
    """Process is alive (used for restart decisions)."""
    return {"status": "alive", "timestamp": _now()}
