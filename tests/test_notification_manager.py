"""Tests for channel selection, fallback and bulk routing."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from config.notification_config import NotificationConfig
from src.notifications import NotificationManager, NotificationType


def build_manager(sms_service, email_service, templates, method="auto", fallback=True):
    config = NotificationConfig(
        _env_file=None,
        DEFAULT_NOTIFICATION_METHOD=method,
        NOTIFICATION_FALLBACK=fallback
    )
    return NotificationManager(config, sms_service, email_service, templates)


class TestChannelSelection:
    """Test per-patient channel choice."""

    def test_phone_only(self, manager, phone_patient):
        assert manager.select_channel(phone_patient) == {
            "method": "sms",
            "contact": "09171234567",
            "fallback": None
        }

    def test_email_only(self, manager, email_patient):
        assert manager.select_channel(email_patient) == {
            "method": "email",
            "contact": "maria@example.com",
            "fallback": None
        }

    def test_auto_prefers_sms(self, manager, dual_patient):
        selection = manager.select_channel(dual_patient)
        assert selection["method"] == "sms"
        assert selection["fallback"] == "email"

    def test_preferred_email(self, sms_service, email_service, templates, dual_patient):
        manager = build_manager(sms_service, email_service, templates, method="email")
        assert manager.select_channel(dual_patient) == {
            "method": "email",
            "contact": "jose@example.com",
            "fallback": "sms"
        }

    def test_preferred_sms_without_phone(self, sms_service, email_service, templates, email_patient):
        manager = build_manager(sms_service, email_service, templates, method="sms")
        assert manager.select_channel(email_patient)["method"] == "email"

    def test_unreachable_patient(self, manager, unreachable_patient):
        assert manager.select_channel(unreachable_patient) is None

    def test_invalid_values_are_unusable(self, manager):
        assert manager.select_channel({"id": 5, "contactNumber": "12345", "email": "nope"}) is None

    def test_snake_case_contact_number(self, manager):
        assert manager.select_channel({"id": 6, "contact_number": "09171234567"})["method"] == "sms"

    def test_selection_is_deterministic(self, manager, dual_patient):
        assert manager.select_channel(dual_patient) == manager.select_channel(dual_patient)

    def test_patient_name(self, manager):
        assert manager.get_patient_name({"name": "Maria Santos"}) == "Maria Santos"
        assert manager.get_patient_name({"first_name": "Juan", "last_name": "Cruz"}) == "Juan Cruz"
        assert manager.get_patient_name({}) == "Patient"


class TestSendNotification:
    """Test single notification delivery."""

    @pytest.mark.asyncio
    async def test_sms_delivery(self, manager, phone_patient):
        result = await manager.send_notification(
            phone_patient,
            NotificationType.GENERAL_ANNOUNCEMENT,
            {"message": "Free flu shots on Saturday."}
        )
        assert result["success"] is True
        assert result["provider"] == "mock"
        assert result["primary_method"] == "sms"
        assert result["fallback_available"] is False
        assert result["patient_id"] == 1
        assert result["patient_name"] == "Juan Dela Cruz"
        assert result["type"] == "general_announcement"
        assert result["message_data"]["message"] == "Free flu shots on Saturday. - Maybunga Health Center"

    @pytest.mark.asyncio
    async def test_no_contact_method(self, manager, unreachable_patient):
        result = await manager.send_notification(unreachable_patient, "general_announcement", {"message": "Hi"})
        assert result == {
            "success": False,
            "error": "No valid contact method found for patient",
            "patient_id": 4,
            "patient_name": "Ana Reyes"
        }

    @pytest.mark.asyncio
    async def test_variable_named_self_is_rendered(self, manager, phone_patient):
        result = await manager.send_notification(
            phone_patient, "general_announcement", {"message": "Hi", "self": "x"}
        )
        assert result["success"] is True
        assert result["message_data"]["message"] == "Hi - Maybunga Health Center"

    @pytest.mark.asyncio
    async def test_fallback_to_email(self, failing_sms_service, email_service, templates, dual_patient):
        manager = build_manager(failing_sms_service, email_service, templates)
        result = await manager.send_notification(dual_patient, "general_announcement", {"message": "Hi"})

        assert result["success"] is True
        assert result["used_fallback"] is True
        assert result["fallback_method"] == "email"
        assert result["primary_method"] == "sms"
        assert result["provider"] == "email"
        email_service._send_smtp.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fallback_disabled(self, failing_sms_service, email_service, templates, dual_patient):
        manager = build_manager(failing_sms_service, email_service, templates, fallback=False)
        result = await manager.send_notification(dual_patient, "general_announcement", {"message": "Hi"})

        assert result["success"] is False
        assert "used_fallback" not in result
        assert result["fallback_available"] is True
        email_service._send_smtp.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_fallback_reports_fallback_error(self, failing_sms_service, email_service, templates, dual_patient):
        email_service._send_smtp.side_effect = OSError("SMTP down")
        manager = build_manager(failing_sms_service, email_service, templates)
        result = await manager.send_notification(dual_patient, "general_announcement", {"message": "Hi"})

        assert result["success"] is False
        assert result["error"] == "SMTP down"
        assert "used_fallback" not in result

    @pytest.mark.asyncio
    async def test_channel_exception_becomes_failure(self, sms_service, email_service, templates, phone_patient):
        sms_service.send_sms = AsyncMock(side_effect=RuntimeError("gateway down"))
        manager = build_manager(sms_service, email_service, templates)
        result = await manager.send_notification(phone_patient, "general_announcement", {"message": "Hi"})

        assert result["success"] is False
        assert result["error"] == "gateway down"
        assert result["provider"] == "sms"

    @pytest.mark.asyncio
    async def test_unknown_type_sends_raw_message(self, manager, phone_patient):
        result = await manager.send_notification(phone_patient, "birthday_greeting", {"message": "Happy birthday!"})
        assert result["success"] is True
        assert result["message_data"]["message"] == "Happy birthday!"


class TestBulkNotifications:
    """Test bulk routing across channels."""

    @pytest.mark.asyncio
    async def test_partition_by_channel(self, manager, phone_patient, email_patient, unreachable_patient):
        summary = await manager.send_bulk_notifications(
            [phone_patient, email_patient, unreachable_patient],
            "general_announcement",
            {"message": "Clinic closed on Friday."}
        )

        assert summary["total"] == 3
        assert summary["sent"] == 2
        assert summary["failed"] == 1
        assert summary["sms_count"] == 1
        assert summary["email_count"] == 1
        assert len(summary["results"]) == 3

        by_patient = {r["patient_id"]: r for r in summary["results"]}
        assert by_patient[1]["method"] == "sms"
        assert by_patient[2]["method"] == "email"
        assert by_patient[4]["error"] == "No contact method available"

    @pytest.mark.asyncio
    async def test_variable_named_self(self, manager, phone_patient, email_patient):
        summary = await manager.send_bulk_notifications(
            [phone_patient, email_patient], "general_announcement", {"message": "Hi", "self": "x"}
        )
        assert summary["sent"] == 2
        assert summary["failed"] == 0

    @pytest.mark.asyncio
    async def test_non_mapping_patient_is_a_failed_result(self, manager, phone_patient):
        summary = await manager.send_bulk_notifications(["abc", phone_patient], "general_announcement", {"message": "Hi"})
        assert summary["total"] == 2
        assert summary["sent"] == 1
        assert summary["failed"] == 1
        assert summary["results"][0]["error"] == "Invalid patient record"

    @pytest.mark.asyncio
    async def test_channel_error_fails_that_group_only(self, sms_service, email_service, templates, phone_patient, email_patient):
        sms_service.send_bulk_sms = AsyncMock(side_effect=RuntimeError("gateway down"))
        manager = build_manager(sms_service, email_service, templates)
        summary = await manager.send_bulk_notifications(
            [phone_patient, email_patient], "general_announcement", {"message": "Hi"}
        )
        by_patient = {r["patient_id"]: r for r in summary["results"]}
        assert by_patient[1]["success"] is False
        assert by_patient[1]["error"] == "gateway down"
        assert by_patient[1]["method"] == "sms"
        assert by_patient[2]["success"] is True

    @pytest.mark.asyncio
    async def test_empty_patient_list(self, manager):
        summary = await manager.send_bulk_notifications([], "general_announcement", {"message": "Hi"})
        assert summary == {"total": 0, "sent": 0, "failed": 0, "sms_count": 0, "email_count": 0, "results": []}


class TestReminders:
    """Test the typed reminder helpers."""

    @pytest.mark.asyncio
    async def test_appointment_reminder(self, manager, phone_patient):
        result = await manager.send_appointment_reminder(phone_patient, {"date": "2026-01-05", "time": "9:00 AM"})
        assert result["success"] is True
        assert result["type"] == "appointment_reminder"
        assert "Monday, January 5, 2026 at 9:00 AM" in result["message_data"]["message"]
        assert result["message_data"]["urgency"] == "normal"

    @pytest.mark.asyncio
    async def test_vaccination_reminder(self, manager, phone_patient):
        result = await manager.send_vaccination_reminder(phone_patient, {"name": "BCG", "due_date": "2026-03-06"})
        assert "Your BCG vaccination is due on Friday, March 6, 2026." in result["message_data"]["message"]
        assert result["message_data"]["urgency"] == "high"

    @pytest.mark.asyncio
    async def test_checkup_reminder(self, manager, phone_patient):
        result = await manager.send_checkup_reminder(phone_patient)
        assert result["success"] is True
        assert result["type"] == "checkup_reminder"

    @pytest.mark.asyncio
    async def test_emergency_alert_by_email(self, manager, email_service, email_patient):
        result = await manager.send_emergency_alert(email_patient, "Flooding near the health center.")
        assert result["success"] is True
        assert result["subject"] == "🚨 URGENT: Health Alert"
        message = email_service._send_smtp.await_args.args[0]
        assert message["To"] == "maria@example.com"

    @pytest.mark.asyncio
    async def test_test_notification(self, manager):
        result = await manager.test_notification("09171234567", "sms")
        assert result["success"] is True
        assert result["patient_id"] == 999
        assert result["patient_name"] == "Test Patient"
        assert "notification system is working correctly" in result["message_data"]["message"]

    @pytest.mark.asyncio
    async def test_test_notification_by_email(self, manager, email_service):
        result = await manager.test_notification("ops@maybunga.health", "email")
        assert result["success"] is True
        assert result["primary_method"] == "email"


class TestManagerHelpers:
    """Test date formatting and status."""

    @pytest.mark.parametrize("value, expected", [
        ("2026-01-05", "Monday, January 5, 2026"),
        ("2026-01-05T09:30:00Z", "Monday, January 5, 2026"),
        (date(2026, 3, 6), "Friday, March 6, 2026"),
        ("", ""),
        (None, ""),
        ("next week", "next week"),
        ("2026-01-05T20:00:00Z", "Tuesday, January 6, 2026"),
        ("2026-01-05T20:00:00+08:00", "Monday, January 5, 2026"),
    ])
    def test_format_date(self, value, expected):
        assert NotificationManager.format_date(value) == expected

    def test_status(self, manager):
        status = manager.get_status()
        assert status["preferred_method"] == "auto"
        assert status["fallback_enabled"] is True
        assert status["sms"]["provider"] == "mock"
        assert status["email"]["configured"] is True

    def test_invalid_preferred_method_is_rejected(self):
        with pytest.raises(ValueError):
            NotificationConfig(_env_file=None, DEFAULT_NOTIFICATION_METHOD="fax")

    def test_preferred_method_is_case_insensitive(self):
        assert NotificationConfig(_env_file=None, DEFAULT_NOTIFICATION_METHOD="SMS").DEFAULT_NOTIFICATION_METHOD == "sms"

    def test_format_date_in_other_timezone(self):
        assert NotificationManager.format_date("2026-01-05T20:00:00Z", "UTC") == "Monday, January 5, 2026"

    def test_unknown_clinic_timezone_is_rejected(self):
        with pytest.raises(ValueError):
            NotificationConfig(_env_file=None, CLINIC_TIMEZONE="Mars/Olympus")
