"""
SMS Service for Patient Notifications

Sends Philippine mobile SMS through the Twilio API, with a simulated sender
used when the gateway is unconfigured (or fails) so development environments
exercise the full delivery path.
"""

import asyncio
import logging
import random
import string
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from twilio.rest import Client
from twilio.http.async_http_client import AsyncTwilioHttpClient

from config.notification_config import SMSConfig
from .notif_templates import TemplateRegistry
from ..utils.validation import (
    format_philippine_number,
    is_valid_philippine_number,
    mask_phone_number
)

logger = logging.getLogger(__name__)


class SMSService:
    """SMS channel backed by Twilio, falling back to mock delivery"""

    # Twilio limit for a concatenated message
    MAX_MESSAGE_LENGTH = 1600

    PLACEHOLDER_VALUES = {
        "TWILIO_ACCOUNT_SID": "your_twilio_account_sid_here",
        "TWILIO_AUTH_TOKEN": "your_twilio_auth_token_here",
        "TWILIO_PHONE_NUMBER": "+1234567890",
    }

    MOCK_FROM_NUMBER = "+15551234567"

    def __init__(
        self,
        config: Optional[SMSConfig] = None,
        templates: Optional[TemplateRegistry] = None,
        client: Optional[Any] = None,
        rng: Optional[random.Random] = None,
        mock_delay: Tuple[float, float] = (1.0, 3.0),
        mock_failure_rate: float = 0.05,
        batch_size: int = 5,
        batch_delay: float = 1.0
    ):
        self.config = config or SMSConfig()
        self.templates = templates or TemplateRegistry()
        self.rng = rng or random.Random()
        self.mock_delay = mock_delay
        self.mock_failure_rate = mock_failure_rate
        self.batch_size = batch_size
        self.batch_delay = batch_delay

        self.client = None
        self.from_number: Optional[str] = None
        self.is_configured = False
        self.provider = self.config.SMS_PROVIDER or "twilio"

        self._initialize_twilio(client)

    def _initialize_twilio(self, client: Optional[Any] = None):
        """Pick the real gateway or mock mode from configuration"""
        if self.config.ENABLE_SMS_MOCK:
            logger.warning("SMS mock mode enabled - SMS will be simulated (not sent)")
            self.provider = "mock"
            return

        account_sid = self.config.TWILIO_ACCOUNT_SID
        auth_token = (
            self.config.TWILIO_AUTH_TOKEN.get_secret_value()
            if self.config.TWILIO_AUTH_TOKEN else None
        )
        from_number = self.config.TWILIO_PHONE_NUMBER

        if not (account_sid and auth_token and from_number):
            logger.warning(
                "Twilio credentials not found, using mock SMS service. "
                "Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER"
            )
            self.provider = "mock"
            return

        credentials = {
            "TWILIO_ACCOUNT_SID": account_sid,
            "TWILIO_AUTH_TOKEN": auth_token,
            "TWILIO_PHONE_NUMBER": from_number,
        }
        if any(credentials[key] == value for key, value in self.PLACEHOLDER_VALUES.items()):
            logger.warning("Twilio credentials are placeholder values, using mock SMS service")
            self.provider = "mock"
            return

        try:
            self.client = client or Client(
                account_sid,
                auth_token,
                http_client=AsyncTwilioHttpClient()
            )
        except Exception as e:
            logger.error(f"Failed to initialize Twilio: {e}")
            self.provider = "mock"
            return

        self.from_number = from_number
        self.is_configured = True
        self.provider = "twilio"
        logger.info(f"Twilio SMS service initialized (from {self.from_number})")

    def format_phone_number(self, phone_number: str) -> str:
        return format_philippine_number(phone_number)

    def is_valid_philippine_number(self, phone_number: str) -> bool:
        return is_valid_philippine_number(phone_number)

    async def send_sms(
        self,
        recipient: Optional[str],
        message: Optional[str],
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send a single SMS

        Args:
            recipient: Philippine mobile number in any accepted format
            message: Message body (max 1600 characters)
            options: urgency, patient_id, patient_name, type

        Returns:
            Delivery result dictionary; never raises
        """
        options = options or {}
        try:
            error = self._validate(recipient, message)
            if error:
                logger.info(f"SMS rejected: {error}")
                return {
                    "success": False,
                    "error": error,
                    "provider": self.provider
                }

            to_number = self.format_phone_number(recipient)
            message_data = {
                "recipient": to_number,
                "message": message.strip(),
                "urgency": options.get("urgency") or "normal",
                "patient_id": options.get("patient_id"),
                "patient_name": options.get("patient_name"),
                "type": options.get("type") or "general",
                "sent_at": datetime.utcnow().isoformat(),
                "provider": self.provider
            }

            if self.provider == "twilio" and self.is_configured:
                try:
                    result = await self._send_twilio_sms(to_number, message)
                except Exception as e:
                    logger.warning(f"Twilio failed, falling back to mock mode: {e}")
                    result = await self._send_mock_sms(to_number, message)
                    result["fallback"] = True
            else:
                result = await self._send_mock_sms(to_number, message)

            logger.info(
                f"SMS to {mask_phone_number(to_number)} "
                f"({message_data['type']}): success={result['success']} "
                f"provider={result['provider']} id={result.get('message_id')}"
            )

            result["message_data"] = message_data
            return result

        except Exception as e:
            logger.error(f"SMS send error: {e}")
            return {
                "success": False,
                "error": str(e),
                "provider": self.provider
            }

    def _validate(self, recipient: Optional[str], message: Optional[str]) -> Optional[str]:
        if not recipient:
            return "Recipient phone number is required"
        if not message or not message.strip():
            return "Message content is required"
        if len(message) > self.MAX_MESSAGE_LENGTH:
            return f"Message too long. Maximum {self.MAX_MESSAGE_LENGTH} characters allowed."
        if not self.is_valid_philippine_number(recipient):
            return "Invalid Philippine phone number format"
        return None

    async def _send_twilio_sms(self, to_phone: str, message: str) -> Dict[str, Any]:
        """Send SMS via Twilio API"""
        params = {
            "body": message,
            "from_": self.from_number,
            "to": to_phone
        }
        if self.config.SMS_STATUS_CALLBACK_URL:
            params["status_callback"] = self.config.SMS_STATUS_CALLBACK_URL

        message_obj = await self.client.messages.create_async(**params)

        return {
            "success": True,
            "message_id": message_obj.sid,
            "status": message_obj.status,
            "to": message_obj.to,
            "from": message_obj.from_,
            "provider": "twilio",
            "cost": message_obj.price,
            "direction": message_obj.direction,
            "sent_at": message_obj.date_created.isoformat() if message_obj.date_created else None
        }

    async def _send_mock_sms(self, to_phone: str, message: str) -> Dict[str, Any]:
        """Simulate delivery with network-like delay and occasional failure"""
        low, high = self.mock_delay
        delay = self.rng.uniform(low, high) if high > 0 else 0
        if delay:
            await asyncio.sleep(delay)

        if self.rng.random() < self.mock_failure_rate:
            logger.info(f"[MOCK SMS - FAILED] To: {mask_phone_number(to_phone)}")
            return {
                "success": False,
                "error": "Mock SMS delivery failed",
                "provider": "mock"
            }

        logger.info(f"[MOCK SMS - SUCCESS] To: {mask_phone_number(to_phone)}")
        return {
            "success": True,
            "message_id": self._generate_mock_id(),
            "status": "delivered",
            "to": to_phone,
            "from": self.MOCK_FROM_NUMBER,
            "provider": "mock",
            "cost": "$0.075",
            "direction": "outbound-api",
            "sent_at": datetime.utcnow().isoformat()
        }

    def _generate_mock_id(self) -> str:
        alphabet = string.digits + string.ascii_lowercase
        suffix = "".join(self.rng.choice(alphabet) for _ in range(9))
        return f"MOCK_{int(time.time() * 1000)}_{suffix}"

    async def send_bulk_sms(
        self,
        recipients: List[Dict[str, Any]],
        message: str,
        options: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Send one message to many recipients in rate-limited batches

        Each recipient is a dict with phone, patient_id and name. Results keep
        the input order and carry the recipient's patient_id/patient_name.
        """
        options = options or {}
        results: List[Optional[Dict[str, Any]]] = [None] * len(recipients)

        for start in range(0, len(recipients), self.batch_size):
            batch = recipients[start:start + self.batch_size]
            batch_results = await asyncio.gather(*[
                self._send_tagged(recipient, message, options)
                for recipient in batch
            ])
            for offset, result in enumerate(batch_results):
                results[start + offset] = result

            # Pause between batches to stay under provider rate limits
            if start + self.batch_size < len(recipients) and self.batch_delay:
                await asyncio.sleep(self.batch_delay)

        return results

    async def _send_tagged(
        self,
        recipient: Dict[str, Any],
        message: str,
        options: Dict[str, Any]
    ) -> Dict[str, Any]:
        result = await self.send_sms(recipient.get("phone"), message, {
            **options,
            "patient_id": recipient.get("patient_id"),
            "patient_name": recipient.get("name")
        })
        result["patient_id"] = recipient.get("patient_id")
        result["patient_name"] = recipient.get("name")
        return result

    def render_template(self, notification_type: str, variables: Optional[Dict[str, Any]] = None) -> str:
        return self.templates.render_sms(notification_type, variables)

    async def handle_delivery_status(
        self,
        message_id: Optional[str],
        status: Optional[str],
        to: Optional[str] = None,
        from_: Optional[str] = None
    ) -> Dict[str, Any]:
        """Accept a Twilio status callback. Delivery status is logged, not stored."""
        logger.info(
            f"SMS delivery status update: id={message_id} status={status} "
            f"to={mask_phone_number(to or '')} from={from_}"
        )
        return {
            "message_id": message_id,
            "status": status,
            "received_at": datetime.utcnow().isoformat()
        }

    def get_status(self) -> Dict[str, Any]:
        """Get service status"""
        return {
            "provider": self.provider,
            "twilio_configured": self.is_configured,
            "ready": self.provider == "mock" or self.is_configured,
            "from_number": self.from_number or "N/A"
        }
