"""
Patient Notification System Module

SMS and email notification services for the Maybunga Health Center, with
per-patient channel selection, cross-channel fallback and batched bulk sends.
"""

from .email_service import EmailService
from .sms_service import SMSService
from .notif_templates import TemplateRegistry
from .notification_manager import NotificationManager, NotificationType, NotificationChannel

__all__ = [
    'EmailService',
    'SMSService',
    'TemplateRegistry',
    'NotificationManager',
    'NotificationType',
    'NotificationChannel'
]

__version__ = '1.0.0'
