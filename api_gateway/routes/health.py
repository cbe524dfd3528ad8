"""
Health check endpoint.

Reports uptime and the number of tracked jobs per kind.
"""

import time

from fastapi import APIRouter, Depends, Request

from api_gateway.dependencies import Services, get_services
from shared.models.job import utc_now

router = APIRouter()

VERSION = "1.0.0"


@router.get("/health")
async def health_check(request: Request, services: Services = Depends(get_services)):
    """
    Health check endpoint.

    Returns:
        Health status with per-kind job counts
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "uptime_seconds": round(time.monotonic() - started_at, 3),
        "version": VERSION,
        "jobs": {kind: len(registry) for kind, registry in services.registries.items()},
        "active_tasks": services.runner.active_count,
        "bundle_ready": services.render.bundle_ready,
    }
