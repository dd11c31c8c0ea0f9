"""
Health Center Notification Configuration

SMS gateway, email transport and routing settings for patient notifications.
All values can be provided through environment variables or a .env file.
"""

from functools import lru_cache
from typing import List, Optional

import pytz
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SMSConfig(BaseSettings):
    """SMS gateway configuration (Twilio) with mock-mode toggle."""

    # Provider Selection
    SMS_PROVIDER: str = Field(default="twilio")
    ENABLE_SMS_MOCK: bool = Field(default=False)

    # Twilio Credentials
    TWILIO_ACCOUNT_SID: Optional[str] = Field(default=None)
    TWILIO_AUTH_TOKEN: Optional[SecretStr] = Field(default=None)
    TWILIO_PHONE_NUMBER: Optional[str] = Field(default=None)

    # Delivery Settings
    SMS_STATUS_CALLBACK_URL: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


class EmailConfig(BaseSettings):
    """Email transport configuration."""

    # Provider Selection
    EMAIL_PROVIDER: str = Field(default="gmail")

    # Credentials
    EMAIL_USER: Optional[str] = Field(default=None)
    EMAIL_PASSWORD: Optional[SecretStr] = Field(default=None)

    # Generic SMTP (EMAIL_PROVIDER=smtp)
    SMTP_HOST: Optional[str] = Field(default=None)
    SMTP_PORT: int = Field(default=587)
    SMTP_SECURE: bool = Field(default=False)

    # Email Settings
    FROM_NAME: str = Field(default="Maybunga Health Center")
    EMAIL_TIMEOUT_SECONDS: int = Field(default=30)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


class NotificationConfig(BaseSettings):
    """Core notification routing configuration."""

    # Channel Settings
    DEFAULT_NOTIFICATION_METHOD: str = Field(default="auto")
    NOTIFICATION_FALLBACK: bool = Field(default=True)
    CLINIC_TIMEZONE: str = Field(default="Asia/Manila")

    # API Settings
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000"])

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("DEFAULT_NOTIFICATION_METHOD")
    @classmethod
    def validate_method(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("auto", "sms", "email"):
            raise ValueError("DEFAULT_NOTIFICATION_METHOD must be one of: auto, sms, email")
        return v

    @field_validator("CLINIC_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown CLINIC_TIMEZONE: {v}")
        return v


@lru_cache()
def get_notification_config() -> NotificationConfig:
    """Get the notification routing configuration."""
    return NotificationConfig()


@lru_cache()
def get_email_config() -> EmailConfig:
    """Get the email configuration."""
    return EmailConfig()


@lru_cache()
def get_sms_config() -> SMSConfig:
    """Get the SMS configuration."""
    return SMSConfig()
