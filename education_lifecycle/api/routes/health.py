"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the run ledger database is unreachable

Design Decisions:
    - Separate liveness/readiness: liveness restarts the pod, readiness only
      removes it from the load balancer
    - Record store not part of readiness: the store being down fails sweeps,
      not the control surface
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from education_lifecycle.api.dependencies import get_db_manager
from education_lifecycle.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "education-lifecycle",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    db: DatabaseSessionManager | None = Depends(get_db_manager),
):
    """Readiness probe — includes run ledger database connectivity."""
    db_ok = await db.health_check() if db else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
