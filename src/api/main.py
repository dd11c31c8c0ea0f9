import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config.notification_config import (
    get_email_config,
    get_notification_config,
    get_sms_config
)
from . import notification_router, health_router, setup_middleware
from ..notifications import EmailService, NotificationManager, SMSService, TemplateRegistry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_notification_manager() -> NotificationManager:
    """Construct the channel services and the router once per process."""
    templates = TemplateRegistry()
    sms_service = SMSService(get_sms_config(), templates)
    email_service = EmailService(get_email_config(), templates)
    return NotificationManager(get_notification_config(), sms_service, email_service, templates)


def create_app(notification_manager: Optional[NotificationManager] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        notification_manager: Pre-built manager (tests); built at startup otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle events.
        """
        logger.info("Starting notification service...")

        if getattr(app.state, "notification_manager", None) is None:
            app.state.notification_manager = build_notification_manager()

        manager = app.state.notification_manager
        status = manager.get_status()
        logger.info(
            f"SMS provider: {status['sms']['provider']} | "
            f"Email configured: {status['email']['configured']} | "
            f"Preferred method: {status['preferred_method']}"
        )

        # Email is optional; a failed check only gets logged
        if manager.email_service.is_configured:
            await manager.email_service.verify_connection()

        yield

        logger.info("Shutting down notification service...")

    app = FastAPI(
        title="Maybunga Health Center Notification Service",
        description="SMS and email patient notifications for the barangay health center",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.notification_manager = notification_manager

    setup_middleware(app, get_notification_config())

    app.include_router(notification_router, prefix="/api")
    app.include_router(health_router)

    return app


app = create_app()
