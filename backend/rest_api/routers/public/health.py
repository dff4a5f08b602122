"""
Health check endpoints for the REST API.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db_context
from pos_stream.event_bus import get_event_bus

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Includes event bus statistics so operators can see connected agents.
    """
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
        "posStream": get_event_bus().stats(),
    }


@router.get("/health/detailed")
def detailed_health_check():
    """
    Verifies database connectivity. Returns 503 if it is down.
    """
    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "dependencies": {},
        "posStream": get_event_bus().stats(),
    }
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
        checks["status"] = "healthy"
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        checks["status"] = "degraded"
        return JSONResponse(content=checks, status_code=503)
    return checks
