"""
Central Notification Manager for the Health Center

Chooses SMS or email per patient from their contact data, renders the
notification content, dispatches it, and retries once through the patient's
other channel when the first attempt fails.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import pytz

from config.notification_config import NotificationConfig
from .email_service import EmailService
from .sms_service import SMSService
from .notif_templates import TemplateRegistry
from ..utils.validation import has_valid_email, has_valid_phone

logger = logging.getLogger(__name__)


class NotificationChannel(str, Enum):
    """Available notification channels"""
    SMS = "sms"
    EMAIL = "email"


class NotificationType(str, Enum):
    """Types of patient notifications"""
    APPOINTMENT_REMINDER = "appointment_reminder"
    APPOINTMENT_CONFIRMATION = "appointment_confirmation"
    VACCINATION_REMINDER = "vaccination_reminder"
    CHECKUP_REMINDER = "checkup_reminder"
    PRESCRIPTION_READY = "prescription_ready"
    LAB_RESULTS_READY = "lab_results_ready"
    EMERGENCY_ALERT = "emergency_alert"
    GENERAL_ANNOUNCEMENT = "general_announcement"


CLINIC_TIMEZONE = "Asia/Manila"

TEST_MESSAGE = (
    "This is a test notification from Maybunga Health Center. If you received "
    "this message, the notification system is working correctly!"
)


def _type_value(notification_type: Union[str, NotificationType]) -> str:
    if isinstance(notification_type, NotificationType):
        return notification_type.value
    return str(notification_type)


class NotificationManager:
    """Routes patient notifications across the SMS and email channels"""

    def __init__(
        self,
        config: NotificationConfig,
        sms_service: SMSService,
        email_service: EmailService,
        templates: Optional[TemplateRegistry] = None
    ):
        self.config = config
        self.sms_service = sms_service
        self.email_service = email_service
        self.templates = templates or TemplateRegistry()

        self.preferred_method = config.DEFAULT_NOTIFICATION_METHOD
        self.fallback_enabled = config.NOTIFICATION_FALLBACK

    @staticmethod
    def get_patient_name(patient: Mapping[str, Any]) -> str:
        if patient.get("name"):
            return patient["name"]
        first = patient.get("firstName") or patient.get("first_name") or ""
        last = patient.get("lastName") or patient.get("last_name") or ""
        return f"{first} {last}".strip() or "Patient"

    @staticmethod
    def _patient_phone(patient: Mapping[str, Any]) -> Optional[str]:
        return patient.get("contactNumber") or patient.get("contact_number")

    def select_channel(self, patient: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Determine the delivery channel for a patient

        Returns:
            {"method", "contact", "fallback"} or None when the patient has no
            usable phone number or email address
        """
        phone = self._patient_phone(patient)
        email = patient.get("email")
        has_phone = has_valid_phone(phone)
        has_email = has_valid_email(email)

        if self.preferred_method == NotificationChannel.SMS.value and has_phone:
            return {"method": "sms", "contact": phone, "fallback": "email" if has_email else None}

        if self.preferred_method == NotificationChannel.EMAIL.value and has_email:
            return {"method": "email", "contact": email, "fallback": "sms" if has_phone else None}

        # Auto mode, or the preferred channel is unusable: SMS first
        if has_phone:
            return {"method": "sms", "contact": phone, "fallback": "email" if has_email else None}

        if has_email:
            return {"method": "email", "contact": email, "fallback": None}

        return None

    def get_notification_content(self, notification_type: str, variables: Mapping[str, Any], method: str) -> str:
        if method == NotificationChannel.SMS.value:
            return self.templates.render_sms(notification_type, variables)
        return self.templates.render_email(notification_type, variables)

    def get_notification_subject(self, notification_type: str, variables: Mapping[str, Any]) -> str:
        return self.templates.get_subject(notification_type, variables)

    async def send_notification(
        self,
        patient: Mapping[str, Any],
        notification_type: Union[str, NotificationType],
        variables: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send a notification through the best channel for the patient

        Args:
            patient: Patient record with id, name and contact fields
            notification_type: Notification type (unknown values send the raw message)
            variables: Template variables
            options: urgency and other delivery hints

        Returns:
            Delivery result with patient identity attached; never raises
        """
        variables = variables or {}
        options = options or {}
        type_value = _type_value(notification_type)
        patient_name = self.get_patient_name(patient)

        try:
            selection = self.select_channel(patient)
            if not selection:
                logger.info(f"No valid contact method for patient {patient.get('id')}")
                return {
                    "success": False,
                    "error": "No valid contact method found for patient",
                    "patient_id": patient.get("id"),
                    "patient_name": patient_name
                }

            method = selection["method"]
            fallback = selection["fallback"]

            result = await self._send_through_channel(
                method, selection["contact"], type_value, variables, patient, options
            )

            if not result.get("success") and self.fallback_enabled and fallback:
                logger.info(f"Primary method ({method}) failed, trying fallback ({fallback})")
                fallback_contact = patient.get("email") if fallback == "email" else self._patient_phone(patient)
                result = await self._send_through_channel(
                    fallback, fallback_contact, type_value, variables, patient, options
                )
                if result.get("success"):
                    result["used_fallback"] = True
                    result["fallback_method"] = fallback

            return {
                **result,
                "patient_id": patient.get("id"),
                "patient_name": patient_name,
                "type": type_value,
                "primary_method": method,
                "fallback_available": bool(fallback)
            }

        except Exception as e:
            logger.error(f"Notification error: {e}")
            return {
                "success": False,
                "error": str(e),
                "patient_id": patient.get("id"),
                "patient_name": patient_name
            }

    async def _send_through_channel(
        self,
        method: str,
        contact: str,
        notification_type: str,
        variables: Mapping[str, Any],
        patient: Mapping[str, Any],
        options: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Render and dispatch through one channel"""
        try:
            content = self.get_notification_content(notification_type, variables, method)
            channel_options = {
                "urgency": options.get("urgency") or "normal",
                "patient_id": patient.get("id"),
                "patient_name": self.get_patient_name(patient),
                "type": notification_type
            }
            if method == NotificationChannel.SMS.value:
                return await self.sms_service.send_sms(contact, content, channel_options)

            subject = self.get_notification_subject(notification_type, variables)
            return await self.email_service.send_email(contact, subject, content, channel_options)

        except Exception as e:
            logger.error(f"Channel send error ({method}): {e}")
            return {
                "success": False,
                "error": str(e),
                "provider": method
            }

    async def send_bulk_notifications(
        self,
        patients: List[Mapping[str, Any]],
        notification_type: Union[str, NotificationType],
        variables: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send one notification to many patients, grouped per channel

        Patients without a usable contact are reported as failures without
        a send attempt. Each channel group renders one shared message.
        """
        variables = variables or {}
        options = options or {}
        type_value = _type_value(notification_type)

        results: List[Dict[str, Any]] = []
        sms_recipients: List[Dict[str, Any]] = []
        email_recipients: List[Dict[str, Any]] = []

        for patient in patients:
            if not isinstance(patient, Mapping):
                results.append({
                    "success": False,
                    "error": "Invalid patient record",
                    "patient_id": None,
                    "patient_name": None
                })
                continue

            selection = self.select_channel(patient)
            recipient = {
                "patient_id": patient.get("id"),
                "name": self.get_patient_name(patient)
            }
            if not selection:
                results.append({
                    "success": False,
                    "error": "No contact method available",
                    "patient_id": recipient["patient_id"],
                    "patient_name": recipient["name"]
                })
            elif selection["method"] == NotificationChannel.SMS.value:
                sms_recipients.append({**recipient, "phone": selection["contact"]})
            else:
                email_recipients.append({**recipient, "email": selection["contact"]})

        channel_options = {"urgency": options.get("urgency"), "type": type_value}

        if sms_recipients:
            try:
                sms_message = self.templates.render_sms(type_value, variables)
                sms_results = await self.sms_service.send_bulk_sms(sms_recipients, sms_message, channel_options)
            except Exception as e:
                logger.error(f"Bulk SMS error: {e}")
                sms_results = self._failed_batch(sms_recipients, e)
            results.extend({**result, "method": "sms"} for result in sms_results)

        if email_recipients:
            try:
                email_content = self.templates.render_email(type_value, variables)
                email_subject = self.get_notification_subject(type_value, variables)
                email_results = await self.email_service.send_bulk_emails(
                    email_recipients, email_subject, email_content, channel_options
                )
            except Exception as e:
                logger.error(f"Bulk email error: {e}")
                email_results = self._failed_batch(email_recipients, e)
            results.extend({**result, "method": "email"} for result in email_results)

        sent = sum(1 for r in results if r.get("success"))
        logger.info(
            f"Bulk {type_value}: {sent}/{len(patients)} sent "
            f"(sms={len(sms_recipients)}, email={len(email_recipients)})"
        )

        return {
            "total": len(patients),
            "sent": sent,
            "failed": len(results) - sent,
            "sms_count": len(sms_recipients),
            "email_count": len(email_recipients),
            "results": results
        }

    @staticmethod
    def _failed_batch(recipients: List[Dict[str, Any]], error: Exception) -> List[Dict[str, Any]]:
        return [
            {
                "success": False,
                "error": str(error),
                "patient_id": recipient["patient_id"],
                "patient_name": recipient["name"]
            }
            for recipient in recipients
        ]

    async def send_appointment_reminder(self, patient: Mapping[str, Any], appointment: Mapping[str, Any]) -> Dict[str, Any]:
        variables = {
            "patientName": self.get_patient_name(patient),
            "date": self.format_date(appointment.get("date"), self.config.CLINIC_TIMEZONE),
            "time": appointment.get("time"),
            "type": appointment.get("type") or "Check-up",
            "doctor": appointment.get("doctor") or "Staff Doctor"
        }
        return await self.send_notification(
            patient, NotificationType.APPOINTMENT_REMINDER, variables, {"urgency": "normal"}
        )

    async def send_vaccination_reminder(self, patient: Mapping[str, Any], vaccine: Mapping[str, Any]) -> Dict[str, Any]:
        variables = {
            "patientName": self.get_patient_name(patient),
            "vaccineName": vaccine.get("name"),
            "dueDate": self.format_date(
                vaccine.get("dueDate") or vaccine.get("due_date"),
                self.config.CLINIC_TIMEZONE
            )
        }
        return await self.send_notification(
            patient, NotificationType.VACCINATION_REMINDER, variables, {"urgency": "high"}
        )

    async def send_checkup_reminder(
        self,
        patient: Mapping[str, Any],
        checkup: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        variables = {"patientName": self.get_patient_name(patient)}
        return await self.send_notification(
            patient, NotificationType.CHECKUP_REMINDER, variables, {"urgency": "normal"}
        )

    async def send_emergency_alert(self, patient: Mapping[str, Any], message: str) -> Dict[str, Any]:
        variables = {
            "patientName": self.get_patient_name(patient),
            "message": message
        }
        return await self.send_notification(
            patient, NotificationType.EMERGENCY_ALERT, variables, {"urgency": "urgent"}
        )

    @staticmethod
    def format_date(value: Union[str, date, datetime, None], timezone: str = CLINIC_TIMEZONE) -> str:
        """Format as a long-form date, e.g. 'Monday, January 5, 2026'

        Timezone-aware datetimes are converted to the clinic's local date first.
        """
        if not value:
            return ""
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return value
        if isinstance(value, datetime) and value.tzinfo is not None:
            value = value.astimezone(pytz.timezone(timezone))
        return f"{value:%A}, {value:%B} {value.day}, {value.year}"

    async def test_notification(self, contact: str, method: str = "auto") -> Dict[str, Any]:
        """Send a self-test announcement to an operator-supplied contact"""
        test_patient = {
            "id": 999,
            "firstName": "Test",
            "lastName": "Patient",
            "contactNumber": contact if method in ("sms", "auto") else None,
            "email": contact if method in ("email", "auto") else None
        }
        return await self.send_notification(
            test_patient,
            NotificationType.GENERAL_ANNOUNCEMENT,
            {"patientName": "Test Patient", "message": TEST_MESSAGE}
        )

    def get_status(self) -> Dict[str, Any]:
        return {
            "sms": self.sms_service.get_status(),
            "email": self.email_service.get_status(),
            "preferred_method": self.preferred_method,
            "fallback_enabled": self.fallback_enabled
        }
