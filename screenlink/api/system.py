"""System status API endpoints."""

from fastapi import APIRouter

from screenlink.config import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/ping")
def system_ping():
    """Lightweight health check (no auth required)."""
    return {"status": "ok"}


@router.get("/presence")
def presence_config():
    """Heartbeat cadence devices should follow (no auth required)."""
    return {
        "heartbeat_interval_seconds": settings.heartbeat_interval_seconds,
        "staleness_window_seconds": settings.staleness_window_seconds,
    }
