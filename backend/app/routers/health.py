"""
Health Check Endpoints

Provides health check endpoints for monitoring and orchestration.
None of them require a user identity.

Endpoints:
- GET /api/health - Basic health check
- GET /api/health/detailed - Database connectivity and scheduled jobs
- GET /api/health/ready - Readiness probe for orchestration systems
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.base import get_db
from app.services.scheduler import get_scheduled_jobs, scheduler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)):
    """
    Detailed health check.

    Reports:
    - Database connectivity (a failure marks the service degraded)
    - Background scheduler state and the next run of each job
    """
    health = {"status": "healthy", "service": settings.APP_NAME, "dependencies": {}}

    try:
        await db.execute(text("SELECT 1"))
        health["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        health["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        health["status"] = "degraded"

    health["scheduler"] = {
        "enabled": settings.SCHEDULER_ENABLED,
        "running": scheduler.running,
        "jobs": get_scheduled_jobs() if scheduler.running else [],
    }

    return health


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness probe for orchestration systems.

    Returns 200 only if the database answers, 503 otherwise.

    Used by: Docker health checks, load balancers, Kubernetes, etc.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ready": False, "error": str(e)},
        )
    return {"ready": True}
