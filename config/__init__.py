"""Configuration module for the notification service."""

from .notification_config import (
    SMSConfig,
    EmailConfig,
    NotificationConfig,
    get_sms_config,
    get_email_config,
    get_notification_config,
)

__all__ = [
    "SMSConfig",
    "EmailConfig",
    "NotificationConfig",
    "get_sms_config",
    "get_email_config",
    "get_notification_config",
]
