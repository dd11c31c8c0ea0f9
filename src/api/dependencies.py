"""FastAPI dependencies for the notification services."""

from fastapi import Request

from ..notifications import NotificationManager


def get_notification_manager(request: Request) -> NotificationManager:
    """Return the manager built once at application startup."""
    return request.app.state.notification_manager
