import logging
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..notifications import NotificationManager
from .dependencies import get_notification_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.time()


def get_uptime() -> float:
    return round(time.time() - _start_time, 2)


@router.get("/", response_model=Dict[str, Any])
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": "health-center-notifications",
        "version": "1.0.0",
        "uptime": get_uptime()
    }


@router.get("/ready", response_model=Dict[str, Any])
async def readiness_check(manager: NotificationManager = Depends(get_notification_manager)):
    """
    Readiness probe.
    Ready when at least one delivery channel can send.
    """
    channels = manager.get_status()
    is_ready = channels["sms"]["ready"] or channels["email"]["ready"]

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": channels
    }
