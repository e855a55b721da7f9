"""Health & Readiness Probes.

Invariants:
    - GET /api/health always returns 200 with a static services report
    - GET /api/health/ready returns 503 if the database is unreachable

Design Decisions:
    - /api/health stays a static stub: dashboards parse its exact shape, and a
      real check lives on /ready instead
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from fhir_registry.api.dependencies import get_db_manager
from fhir_registry.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check():
    """Static liveness report."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": "connected",
            "fhirClient": "initialized",
        },
    }


@router.get("/ready")
async def readiness_check(
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    """Readiness probe: includes database connectivity."""
    if not await db.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
