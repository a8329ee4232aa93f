"""Health Routes — liveness and readiness for the Ember API process.

Invariants:
    - GET /health/ answers 200 with the configured service name and version
      without touching the database
    - GET /health/ready answers 503 when no session manager is installed or the
      store does not answer SELECT 1; otherwise 200 with the measured latency
"""

import logging
import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ember.config import get_settings
from ember.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": settings.service_version,
    }


@router.get("/ready")
async def readiness():
    """Check the store; load balancers drop the instance while this is 503."""
    manager = database.db_manager
    if manager is None:
        logger.warning("Readiness failed: database not initialized")
        return _not_ready("database_not_initialized")

    started = time.perf_counter()
    db_ok = await manager.health_check()
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if not db_ok:
        logger.warning(
            "Readiness failed: database unreachable",
            extra={"latency_ms": latency_ms},
        )
        return _not_ready("database_unavailable")

    return {
        "status": "ready",
        "checks": {
            "database": {"status": "healthy", "latency_ms": latency_ms},
        },
    }


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )
