"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the database or registry is missing

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      the load balancer
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import statebox.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "statebox-api",
        "version": "0.1.0",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — database connectivity and store registry."""
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    registry = getattr(request.app.state, "registry", None)
    if not db_ok or registry is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable" if not db_ok else "stores_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "stores": registry.names()},
    }
