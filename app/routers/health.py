# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness/readiness for monitoring and load balancers. Readiness checks the
# database and the Redis instance behind Celery and the WebSocket fan-out.
# =============================================================================

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


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
    redis: str


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _check_database() -> str:
    from lib.supabase_client import SupabaseClient
    try:
        SupabaseClient.get_client().table("users").select("id").limit(1).execute()
        return "healthy"
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def _check_redis() -> str:
    from app.websocket.broadcast import get_redis_client
    try:
        get_redis_client().ping()
        return "healthy"
    except Exception as e:
        logger.warning(f"Redis readiness check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health status."""
    return HealthResponse(
        status="healthy",
        timestamp=utc_now_iso(),
        environment=settings.ENVIRONMENT,
        version="1.0.0",
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Whether the service can take traffic.

    "degraded" when the database or Redis is unreachable.
    """
    checks = ChecksResponse(database=_check_database(), redis=_check_redis())
    all_healthy = checks.database == "healthy" and checks.redis == "healthy"

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=utc_now_iso(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """Whether the process is alive."""
    return LivenessResponse(status="alive", timestamp=utc_now_iso())
