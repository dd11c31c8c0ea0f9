"""Shared fixtures for notification tests."""

import random
from unittest.mock import AsyncMock

import pytest

from config.notification_config import EmailConfig, NotificationConfig, SMSConfig
from src.notifications import EmailService, NotificationManager, SMSService, TemplateRegistry


@pytest.fixture
def templates():
    return TemplateRegistry()


@pytest.fixture
def sms_config():
    return SMSConfig(_env_file=None, ENABLE_SMS_MOCK=True)


@pytest.fixture
def email_config():
    return EmailConfig(
        _env_file=None,
        EMAIL_PROVIDER="gmail",
        EMAIL_USER="clinic@maybunga.health",
        EMAIL_PASSWORD="app-password"
    )


@pytest.fixture
def notification_config():
    return NotificationConfig(_env_file=None, DEFAULT_NOTIFICATION_METHOD="auto", NOTIFICATION_FALLBACK=True)


@pytest.fixture
def sms_service(sms_config, templates):
    """Mock-mode SMS service that always delivers, without delays."""
    return SMSService(
        sms_config,
        templates,
        rng=random.Random(7),
        mock_delay=(0, 0),
        mock_failure_rate=0.0,
        batch_delay=0
    )


@pytest.fixture
def failing_sms_service(sms_config, templates):
    """Mock-mode SMS service whose every simulated send fails."""
    return SMSService(
        sms_config,
        templates,
        rng=random.Random(7),
        mock_delay=(0, 0),
        mock_failure_rate=1.0,
        batch_delay=0
    )


@pytest.fixture
def email_service(email_config, templates):
    """Configured email service with the SMTP transport replaced."""
    service = EmailService(email_config, templates, batch_delay=0)
    service._send_smtp = AsyncMock()
    return service


@pytest.fixture
def manager(notification_config, sms_service, email_service, templates):
    return NotificationManager(notification_config, sms_service, email_service, templates)


@pytest.fixture
def phone_patient():
    return {"id": 1, "firstName": "Juan", "lastName": "Dela Cruz", "contactNumber": "09171234567", "email": "N/A"}


@pytest.fixture
def email_patient():
    return {"id": 2, "name": "Maria Santos", "contactNumber": "N/A", "email": "maria@example.com"}


@pytest.fixture
def dual_patient():
    return {"id": 3, "name": "Jose Rizal", "contactNumber": "0917 123 4567", "email": "jose@example.com"}


@pytest.fixture
def unreachable_patient():
    return {"id": 4, "name": "Ana Reyes", "contactNumber": "n/a", "email": "N/A"}
