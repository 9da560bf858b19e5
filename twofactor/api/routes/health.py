"""
Health Check Endpoints.

Provides health status for the API.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from ..models import HealthStatus
from ..deps import get_app_settings
from ...utils.config import Settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
):
    """
    Basic health check endpoint.

    Reports whether an authentication strategy is configured.
    """
    strategy = getattr(request.app.state, "strategy", None)
    services = {
        "strategy": f"configured ({strategy.name})" if strategy else "missing",
    }

    return HealthStatus(
        status="healthy" if strategy else "unhealthy",
        version=settings.app_version,
        services=services,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/live")
async def liveness():
    """
    Kubernetes liveness probe.

    Returns 200 if the service is running.
    """
    return {"status": "alive"}
