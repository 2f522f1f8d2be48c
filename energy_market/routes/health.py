"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends

from energy_market.core.config import Settings
from energy_market.routes.deps import get_app_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(settings: Settings = Depends(get_app_settings)):
    """Root health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version
    }


@router.get("/live")
async def liveness():
    """Liveness probe endpoint."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness():
    """Readiness probe endpoint."""
    return {"status": "ready"}
