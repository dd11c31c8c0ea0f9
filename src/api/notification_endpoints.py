"""
Patient Notification API Endpoints

Thin HTTP layer over the notification services: validates request bodies,
forwards to the services and returns their structured results.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..notifications import NotificationManager
from .dependencies import get_notification_manager
from .middleware import notification_count

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


# Request Models
# Required fields are Optional here so missing values map to HTTP 400
class SendNotificationRequest(BaseModel):
    """Request model for sending a notification to one patient"""
    patient: Optional[Dict[str, Any]] = None
    type: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
    options: Optional[Dict[str, Any]] = None


class BulkNotificationRequest(BaseModel):
    """Request model for bulk notifications"""
    patients: Optional[Any] = None
    type: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
    options: Optional[Dict[str, Any]] = None


class SendSMSRequest(BaseModel):
    recipient: Optional[str] = None
    message: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class SendEmailRequest(BaseModel):
    recipient: Optional[str] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class AppointmentReminderRequest(BaseModel):
    patient: Optional[Dict[str, Any]] = None
    appointment: Optional[Dict[str, Any]] = None


class VaccinationReminderRequest(BaseModel):
    patient: Optional[Dict[str, Any]] = None
    vaccine: Optional[Dict[str, Any]] = None


class CheckupReminderRequest(BaseModel):
    patient: Optional[Dict[str, Any]] = None


class EmergencyAlertRequest(BaseModel):
    patient: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class TestNotificationRequest(BaseModel):
    """Request model for testing notifications"""
    contact: Optional[str] = None
    method: Optional[str] = None


def _require(condition: Any, detail: str):
    if not condition:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _record(result: Dict[str, Any], channel: Optional[str] = None) -> Dict[str, Any]:
    notification_count.labels(
        channel=channel or result.get("method") or result.get("primary_method") or "none",
        success=str(bool(result.get("success"))).lower()
    ).inc()
    return result


@router.post("/send-notification")
async def send_notification(
    request: SendNotificationRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Send a notification to one patient through the best available channel."""
    _require(request.patient, "Patient information is required")
    _require(request.type, "Notification type is required")

    result = await manager.send_notification(
        request.patient,
        request.type,
        request.variables or {},
        request.options or {}
    )
    return _record(result)


@router.post("/send-bulk-notifications")
async def send_bulk_notifications(
    request: BulkNotificationRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Send a notification to many patients, batched per channel."""
    _require(
        isinstance(request.patients, list) and len(request.patients) > 0,
        "Patients array is required and cannot be empty"
    )
    _require(
        all(isinstance(patient, dict) for patient in request.patients),
        "Each patient must be an object"
    )
    _require(request.type, "Notification type is required")

    result = await manager.send_bulk_notifications(
        request.patients,
        request.type,
        request.variables or {},
        request.options or {}
    )
    for item in result["results"]:
        _record(item)
    return {"success": True, **result}


@router.post("/send-sms")
async def send_sms(
    request: SendSMSRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Send an SMS directly, bypassing channel selection."""
    _require(request.recipient, "Recipient phone number is required")
    _require(request.message, "Message content is required")

    result = await manager.sms_service.send_sms(request.recipient, request.message, request.options or {})
    return _record(result, "sms")


@router.post("/send-email")
async def send_email(
    request: SendEmailRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Send an email directly, bypassing channel selection."""
    _require(request.recipient, "Recipient email address is required")
    _require(request.subject, "Email subject is required")
    _require(request.content, "Email content is required")

    result = await manager.email_service.send_email(
        request.recipient,
        request.subject,
        request.content,
        request.options or {}
    )
    return _record(result, "email")


@router.post("/send-appointment-reminder")
async def send_appointment_reminder(
    request: AppointmentReminderRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    _require(request.patient and request.appointment, "Patient and appointment information are required")
    result = await manager.send_appointment_reminder(request.patient, request.appointment)
    return _record(result)


@router.post("/send-vaccination-reminder")
async def send_vaccination_reminder(
    request: VaccinationReminderRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    _require(request.patient and request.vaccine, "Patient and vaccine information are required")
    result = await manager.send_vaccination_reminder(request.patient, request.vaccine)
    return _record(result)


@router.post("/send-checkup-reminder")
async def send_checkup_reminder(
    request: CheckupReminderRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    _require(request.patient, "Patient information is required")
    result = await manager.send_checkup_reminder(request.patient)
    return _record(result)


@router.post("/send-emergency-alert")
async def send_emergency_alert(
    request: EmergencyAlertRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    _require(request.patient and request.message, "Patient information and message are required")
    result = await manager.send_emergency_alert(request.patient, request.message)
    return _record(result)


@router.get("/status")
async def get_status(manager: NotificationManager = Depends(get_notification_manager)):
    """Aggregate status of both channels and the routing settings."""
    return {"success": True, "status": manager.get_status()}


@router.get("/sms-status")
async def get_sms_status(manager: NotificationManager = Depends(get_notification_manager)):
    return {"success": True, "status": manager.sms_service.get_status()}


@router.get("/email-status")
async def get_email_status(manager: NotificationManager = Depends(get_notification_manager)):
    return {"success": True, "status": manager.email_service.get_status()}


@router.post("/test-notification")
async def test_notification(
    request: TestNotificationRequest,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Send a self-test message to verify channel configuration."""
    _require(request.contact, "Test contact (phone number or email) is required")
    result = await manager.test_notification(request.contact, request.method or "auto")
    return _record(result)


@router.post("/sms-delivery-status", response_class=PlainTextResponse)
async def sms_delivery_status(
    req: Request,
    manager: NotificationManager = Depends(get_notification_manager)
):
    """Twilio delivery status callback (form-encoded or JSON)."""
    if req.headers.get("content-type", "").startswith("application/json"):
        payload = await req.json()
    else:
        payload = dict(await req.form())

    await manager.sms_service.handle_delivery_status(
        message_id=payload.get("MessageSid"),
        status=payload.get("MessageStatus"),
        to=payload.get("To"),
        from_=payload.get("From")
    )
    return "OK"
