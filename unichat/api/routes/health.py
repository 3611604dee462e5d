"""Health check endpoints."""

from datetime import datetime

import structlog
from fastapi import APIRouter

from unichat import __version__
from unichat.kernel.time import utc_now

router = APIRouter()
logger = structlog.get_logger()

# Track startup time
_startup_time: datetime = utc_now()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the service is running.
    """
    return {
        "status": "healthy",
        "service": "unichat",
        "version": __version__,
        "timestamp": utc_now().isoformat(),
        "uptime_seconds": (utc_now() - _startup_time).total_seconds(),
    }


@router.get("/live")
async def liveness_check():
    """
    Liveness check for Kubernetes.
    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
