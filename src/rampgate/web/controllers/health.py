"""Health check endpoints."""

from fastapi import APIRouter, Depends

from rampgate import __version__
from rampgate.config import get_settings
from rampgate.services.gateway import RampGateway, get_gateway

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "rampgate"}


@router.get("/health/detailed")
async def detailed_health(gateway: RampGateway = Depends(get_gateway)):
    """Detailed health check with configuration and cache counters."""
    settings = get_settings()
    stats = gateway.cache.stats
    return {
        "status": "degraded" if stats.auth_failures else "healthy",
        "service": "rampgate",
        "version": __version__,
        "config": settings.get_safe_dict(),
        "cache": stats.to_dict(),
    }
