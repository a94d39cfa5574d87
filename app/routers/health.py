# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        process is up, with environment and version
# /health/live   liveness probe (no dependencies touched)
# /health/ready  Supabase, the S3 bucket and Redis are all reachable
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """Per-dependency status ("healthy" or "unhealthy: <reason>")."""
    status: str
    checks: dict[str, str]
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Dependency Probes
# =============================================================================

def _probe_database() -> None:
    from lib.supabase_client import SupabaseClient

    SupabaseClient.get_client().table("projects").select("id").limit(1).execute()


def _probe_bucket() -> None:
    from lib.object_storage import ObjectStorageClient

    ObjectStorageClient.get_client().head_bucket(Bucket=settings.S3_BUCKET)


def _probe_redis() -> None:
    from app.websocket.broadcast import get_redis_client

    get_redis_client().ping()


PROBES: dict[str, Callable[[], None]] = {
    "database": _probe_database,
    "storage": _probe_bucket,
    "redis": _probe_redis,
}


def run_probe(name: str, probe: Callable[[], None]) -> str:
    try:
        probe()
        return "healthy"
    except Exception as e:
        logger.warning(f"Readiness probe {name} failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Report "ready" only when every dependency answers; otherwise
    "degraded" with the failing checks.
    """
    checks = {name: run_probe(name, probe) for name, probe in PROBES.items()}
    ready = all(result == "healthy" for result in checks.values())
    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(status="alive", timestamp=_now())
