"""Tests for the SMS channel."""

import random
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config.notification_config import SMSConfig
from src.notifications import SMSService


def twilio_config(**overrides):
    values = {
        "TWILIO_ACCOUNT_SID": "AC0123456789abcdef",
        "TWILIO_AUTH_TOKEN": "secret-token",
        "TWILIO_PHONE_NUMBER": "+15005550006",
    }
    values.update(overrides)
    return SMSConfig(_env_file=None, ENABLE_SMS_MOCK=False, **values)


def twilio_client(side_effect=None):
    client = MagicMock()
    client.messages.create_async = AsyncMock(
        return_value=SimpleNamespace(
            sid="SM123",
            status="queued",
            to="+639171234567",
            from_="+15005550006",
            price=None,
            direction="outbound-api",
            date_created=datetime(2026, 1, 5, 9, 0)
        ),
        side_effect=side_effect
    )
    return client


def quiet_service(config, templates, client=None, **kwargs):
    return SMSService(
        config,
        templates,
        client=client,
        rng=random.Random(1),
        mock_delay=(0, 0),
        mock_failure_rate=0.0,
        **kwargs
    )


class TestSMSInitialization:
    """Test gateway selection."""

    def test_mock_flag_forces_mock(self, sms_service):
        assert sms_service.provider == "mock"
        assert sms_service.is_configured is False

    def test_missing_credentials_use_mock(self, templates):
        service = quiet_service(SMSConfig(_env_file=None, ENABLE_SMS_MOCK=False), templates)
        assert service.provider == "mock"
        assert service.client is None

    def test_placeholder_credentials_use_mock(self, templates):
        config = twilio_config(TWILIO_ACCOUNT_SID="your_twilio_account_sid_here")
        service = quiet_service(config, templates, client=twilio_client())
        assert service.provider == "mock"
        assert service.is_configured is False

    def test_placeholder_phone_number_uses_mock(self, templates):
        service = quiet_service(twilio_config(TWILIO_PHONE_NUMBER="+1234567890"), templates, client=twilio_client())
        assert service.provider == "mock"

    def test_real_credentials_use_twilio(self, templates):
        service = quiet_service(twilio_config(), templates, client=twilio_client())
        assert service.provider == "twilio"
        assert service.is_configured is True
        assert service.from_number == "+15005550006"


class TestSendSMS:
    """Test single SMS delivery."""

    @pytest.mark.asyncio
    async def test_mock_send_succeeds(self, sms_service):
        result = await sms_service.send_sms("09171234567", "Hello", {"type": "general_announcement"})
        assert result["success"] is True
        assert result["provider"] == "mock"
        assert result["message_id"].startswith("MOCK_")
        assert result["to"] == "+639171234567"
        assert result["message_data"]["recipient"] == "+639171234567"
        assert result["message_data"]["type"] == "general_announcement"
        assert result["message_data"]["urgency"] == "normal"

    @pytest.mark.asyncio
    async def test_mock_failure(self, failing_sms_service):
        result = await failing_sms_service.send_sms("09171234567", "Hello")
        assert result["success"] is False
        assert result["error"] == "Mock SMS delivery failed"
        assert result["provider"] == "mock"

    @pytest.mark.asyncio
    async def test_twilio_send(self, templates):
        client = twilio_client()
        service = quiet_service(twilio_config(SMS_STATUS_CALLBACK_URL="https://clinic.example/cb"), templates, client)

        result = await service.send_sms("0917 123 4567", "Your appointment is tomorrow")

        assert result["success"] is True
        assert result["provider"] == "twilio"
        assert result["message_id"] == "SM123"
        assert result["sent_at"] == "2026-01-05T09:00:00"
        client.messages.create_async.assert_awaited_once_with(
            body="Your appointment is tomorrow",
            from_="+15005550006",
            to="+639171234567",
            status_callback="https://clinic.example/cb"
        )

    @pytest.mark.asyncio
    async def test_twilio_error_falls_back_to_mock(self, templates):
        client = twilio_client(side_effect=Exception("Authenticate"))
        service = quiet_service(twilio_config(), templates, client)

        result = await service.send_sms("09171234567", "Hello")

        assert result["success"] is True
        assert result["fallback"] is True
        assert result["provider"] == "mock"

    @pytest.mark.asyncio
    async def test_message_at_length_limit(self, sms_service):
        result = await sms_service.send_sms("09171234567", "x" * 1600)
        assert result["success"] is True

    @pytest.mark.asyncio
    async def test_message_over_length_limit(self, sms_service):
        result = await sms_service.send_sms("09171234567", "x" * 1601)
        assert result["success"] is False
        assert "Maximum 1600" in result["error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["", "   ", None])
    async def test_empty_message(self, sms_service, message):
        result = await sms_service.send_sms("09171234567", message)
        assert result["success"] is False
        assert result["error"] == "Message content is required"

    @pytest.mark.asyncio
    async def test_missing_recipient(self, sms_service):
        result = await sms_service.send_sms(None, "Hello")
        assert result["error"] == "Recipient phone number is required"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recipient", ["12345", "N/A", "1234567890"])
    async def test_invalid_number(self, sms_service, recipient):
        result = await sms_service.send_sms(recipient, "Hello")
        assert result["success"] is False
        assert result["error"] == "Invalid Philippine phone number format"


class TestBulkSMS:
    """Test batched SMS delivery."""

    @pytest.mark.asyncio
    async def test_results_keep_recipient_order(self, sms_config, templates):
        service = quiet_service(sms_config, templates, batch_delay=1.0)
        recipients = [
            {"phone": f"0917123456{i}", "patient_id": i, "name": f"Patient {i}"}
            for i in range(7)
        ]

        with patch("src.notifications.sms_service.asyncio.sleep", new_callable=AsyncMock) as sleep:
            results = await service.send_bulk_sms(recipients, "Clinic closed on Friday")

        assert [r["patient_id"] for r in results] == list(range(7))
        assert [r["patient_name"] for r in results] == [f"Patient {i}" for i in range(7)]
        assert all(r["success"] for r in results)
        # Two batches of at most five, one pause between them
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_invalid_recipient_is_tagged(self, sms_service):
        results = await sms_service.send_bulk_sms(
            [{"phone": "N/A", "patient_id": 9, "name": "No Phone"}],
            "Hello"
        )
        assert results[0]["success"] is False
        assert results[0]["patient_id"] == 9

    @pytest.mark.asyncio
    async def test_empty_recipient_list(self, sms_service):
        assert await sms_service.send_bulk_sms([], "Hello") == []


class TestSMSStatus:
    """Test status reporting and delivery callbacks."""

    def test_mock_status(self, sms_service):
        assert sms_service.get_status() == {
            "provider": "mock",
            "twilio_configured": False,
            "ready": True,
            "from_number": "N/A"
        }

    def test_twilio_status(self, templates):
        status = quiet_service(twilio_config(), templates, twilio_client()).get_status()
        assert status["ready"] is True
        assert status["twilio_configured"] is True
        assert status["from_number"] == "+15005550006"

    @pytest.mark.asyncio
    async def test_delivery_status_is_acknowledged(self, sms_service):
        ack = await sms_service.handle_delivery_status("SM123", "delivered", "+639171234567", "+15005550006")
        assert ack["message_id"] == "SM123"
        assert ack["status"] == "delivered"
        assert "received_at" in ack

    def test_render_template(self, sms_service):
        text = sms_service.render_template("general_announcement", {"message": "Hi"})
        assert text == "Hi - Maybunga Health Center"
