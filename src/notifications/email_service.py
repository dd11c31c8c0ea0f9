"""
Email Service for Patient Notifications

Delivers clinic-branded HTML email over SMTP (Gmail, Outlook or a generic
server). A missing configuration disables the channel without affecting
the rest of the notification system.
"""

import asyncio
import html
import logging
import re
from datetime import datetime
from email.header import Header
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Any, Dict, List, Optional

import aiosmtplib

from config.notification_config import EmailConfig
from .notif_templates import TemplateRegistry
from ..utils.validation import is_sentinel, is_valid_email

logger = logging.getLogger(__name__)


# Connection presets per provider name
SMTP_PRESETS: Dict[str, Dict[str, Any]] = {
    "gmail": {"hostname": "smtp.gmail.com", "port": 465, "use_tls": True},
    "outlook": {"hostname": "smtp-mail.outlook.com", "port": 587, "use_tls": False},
}


class EmailError(Exception):
    """Base exception for email errors."""
    pass


class EmailService:
    """SMTP email channel for patient notifications"""

    def __init__(
        self,
        config: Optional[EmailConfig] = None,
        templates: Optional[TemplateRegistry] = None,
        batch_size: int = 10,
        batch_delay: float = 2.0
    ):
        self.config = config or EmailConfig()
        self.templates = templates or TemplateRegistry()
        self.batch_size = batch_size
        self.batch_delay = batch_delay

        self.provider = (self.config.EMAIL_PROVIDER or "gmail").lower()
        self.smtp_settings: Optional[Dict[str, Any]] = None
        self.is_configured = False

        self._initialize_transport()

    def _initialize_transport(self):
        """Resolve SMTP connection settings; stay disabled without credentials"""
        self.smtp_settings = self._get_smtp_settings()
        if self.smtp_settings is None:
            logger.warning("Email credentials not found, email service disabled")
            return

        self.is_configured = True
        logger.info(
            f"Email service initialized ({self.provider}: "
            f"{self.smtp_settings['hostname']}:{self.smtp_settings['port']})"
        )

    def _get_smtp_settings(self) -> Optional[Dict[str, Any]]:
        user = self.config.EMAIL_USER
        password = self.config.EMAIL_PASSWORD.get_secret_value() if self.config.EMAIL_PASSWORD else None
        if not user or not password:
            return None

        if self.provider == "smtp":
            if not self.config.SMTP_HOST:
                logger.warning("EMAIL_PROVIDER=smtp requires SMTP_HOST")
                return None
            connection = {
                "hostname": self.config.SMTP_HOST,
                "port": self.config.SMTP_PORT or 587,
                "use_tls": self.config.SMTP_SECURE,
            }
        else:
            # Unknown provider names behave like gmail
            connection = dict(SMTP_PRESETS.get(self.provider, SMTP_PRESETS["gmail"]))

        # Port 587 style servers upgrade the plain connection
        connection["start_tls"] = not connection["use_tls"]
        connection.update({
            "username": user,
            "password": password,
            "timeout": self.config.EMAIL_TIMEOUT_SECONDS,
        })
        return connection

    async def verify_connection(self) -> bool:
        """Open and authenticate an SMTP session to check the credentials"""
        if not self.is_configured:
            return False

        settings = self.smtp_settings
        try:
            smtp = aiosmtplib.SMTP(
                hostname=settings["hostname"],
                port=settings["port"],
                use_tls=settings["use_tls"],
                start_tls=settings["start_tls"],
                timeout=settings["timeout"]
            )
            async with smtp:
                await smtp.login(settings["username"], settings["password"])
            logger.info("Email service connection verified")
            return True
        except Exception as e:
            logger.warning(f"Email service verification failed: {e}")
            return False

    def is_valid_email(self, email: str) -> bool:
        return is_valid_email(email)

    def generate_email_html(self, subject: str, content: str, patient_name: Optional[str] = None) -> str:
        return self.templates.render_letterhead(subject, content, patient_name)

    @staticmethod
    def html_to_text(content: str) -> str:
        """Strip HTML tags and decode entities for the plain-text alternative part"""
        return html.unescape(re.sub(r'<[^>]*>', '', content))

    async def send_email(
        self,
        to: Optional[str],
        subject: str,
        content: str,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send an email wrapped in the clinic letterhead

        Args:
            to: Recipient address; empty or N/A skips the send
            subject: Email subject
            content: HTML fragment or plain text
            options: patient_name, urgency, type

        Returns:
            Delivery result dictionary; never raises
        """
        options = options or {}
        try:
            if is_sentinel(to):
                logger.info("Skipping email - recipient has no valid email address (N/A or empty)")
                return {
                    "success": False,
                    "skipped": True,
                    "reason": "No valid email address provided (N/A)",
                    "provider": "email"
                }

            if not self.is_configured:
                raise EmailError("Email service not configured")

            if not self.is_valid_email(to):
                raise EmailError("Invalid email address format")

            message = self._build_message(to, subject, content, options.get("patient_name"))
            await self._send_smtp(message)

            logger.info(f"Email sent successfully to {to} ({subject})")
            return {
                "success": True,
                "message_id": message["Message-ID"],
                "to": to,
                "subject": subject,
                "provider": "email",
                "sent_at": datetime.utcnow().isoformat()
            }

        except Exception as e:
            logger.error(f"Email send error: {e}")
            return {
                "success": False,
                "error": str(e),
                "provider": "email"
            }

    def _build_message(
        self,
        to: str,
        subject: str,
        content: str,
        patient_name: Optional[str] = None
    ) -> MIMEMultipart:
        message = MIMEMultipart('alternative')
        message['From'] = formataddr((self.config.FROM_NAME, self.config.EMAIL_USER))
        message['To'] = to
        message['Subject'] = Header(subject, 'utf-8')
        message['Message-ID'] = make_msgid(domain="maybunga.health")

        message.attach(MIMEText(self.html_to_text(content), 'plain'))
        message.attach(MIMEText(self.generate_email_html(subject, content, patient_name), 'html'))
        return message

    async def _send_smtp(self, message: MIMEMultipart):
        """Send the message through the configured SMTP server"""
        settings = self.smtp_settings
        await aiosmtplib.send(
            message,
            hostname=settings["hostname"],
            port=settings["port"],
            username=settings["username"],
            password=settings["password"],
            use_tls=settings["use_tls"],
            start_tls=settings["start_tls"],
            timeout=settings["timeout"]
        )

    async def send_bulk_emails(
        self,
        recipients: List[Dict[str, Any]],
        subject: str,
        content: str,
        options: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Send one email to many recipients in batches; results keep input order"""
        options = options or {}
        results: List[Optional[Dict[str, Any]]] = [None] * len(recipients)

        for start in range(0, len(recipients), self.batch_size):
            batch = recipients[start:start + self.batch_size]
            batch_results = await asyncio.gather(*[
                self._send_tagged(recipient, subject, content, options)
                for recipient in batch
            ])
            for offset, result in enumerate(batch_results):
                results[start + offset] = result

            if start + self.batch_size < len(recipients) and self.batch_delay:
                await asyncio.sleep(self.batch_delay)

        return results

    async def _send_tagged(
        self,
        recipient: Dict[str, Any],
        subject: str,
        content: str,
        options: Dict[str, Any]
    ) -> Dict[str, Any]:
        result = await self.send_email(recipient.get("email"), subject, content, {
            **options,
            "patient_name": recipient.get("name")
        })
        result["patient_id"] = recipient.get("patient_id")
        result["patient_name"] = recipient.get("name")
        return result

    def render_template(self, notification_type: str, variables: Optional[Dict[str, Any]] = None) -> str:
        return self.templates.render_email(notification_type, variables)

    def get_subject(self, notification_type: str, variables: Optional[Dict[str, Any]] = None) -> str:
        return self.templates.get_subject(notification_type, variables)

    def get_status(self) -> Dict[str, Any]:
        """Get service status"""
        return {
            "provider": self.provider,
            "configured": self.is_configured,
            "ready": self.is_configured,
            "user": self.config.EMAIL_USER or "Not configured"
        }
