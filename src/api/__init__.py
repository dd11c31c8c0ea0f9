from .notification_endpoints import router as notification_router
from .health_endpoints import router as health_router
from .middleware import setup_middleware

__all__ = [
    "notification_router",
    "health_router",
    "setup_middleware",
]
