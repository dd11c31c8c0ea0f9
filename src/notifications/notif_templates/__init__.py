"""
Notification Templates Package

SMS text bodies, email subjects, HTML fragments and the clinic letterhead,
rendered with Jinja2.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, BaseLoader

from .sms_templates import SMS_TEMPLATES
from .email_templates import (
    EMAIL_SUBJECTS,
    EMAIL_TEMPLATES,
    DEFAULT_SUBJECT,
    FALLBACK_TEMPLATE,
    LETTERHEAD_TEMPLATE
)

logger = logging.getLogger(__name__)

__all__ = [
    'TemplateRegistry',
    'SMS_TEMPLATES',
    'EMAIL_SUBJECTS',
    'EMAIL_TEMPLATES'
]


class TemplateRegistry:
    """Per-notification-type SMS text, email subject and HTML body lookup"""

    def __init__(self):
        self.text_env = Environment(loader=BaseLoader(), autoescape=False)
        self.html_env = Environment(loader=BaseLoader(), autoescape=True)
        self._letterhead = self.html_env.from_string(LETTERHEAD_TEMPLATE)

    def has_sms_template(self, notification_type: str) -> bool:
        return notification_type in SMS_TEMPLATES

    def render_sms(self, notification_type: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render the SMS body; unknown types send variables['message'] verbatim."""
        variables = dict(variables or {})
        source = SMS_TEMPLATES.get(notification_type)
        if source is None:
            logger.debug(f"No SMS template for {notification_type}, using raw message")
            message = variables.get("message")
            return "" if message is None else str(message)
        return self.text_env.from_string(source).render(variables)

    def render_email(self, notification_type: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render the HTML fragment placed inside the letterhead."""
        variables = dict(variables or {})
        source = EMAIL_TEMPLATES.get(notification_type, FALLBACK_TEMPLATE)
        return self.html_env.from_string(source).render(variables)

    def get_subject(self, notification_type: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        source = EMAIL_SUBJECTS.get(notification_type)
        if source is None:
            return DEFAULT_SUBJECT
        return self.text_env.from_string(source).render(dict(variables or {}))

    def render_letterhead(self, subject: str, content: str, patient_name: Optional[str] = None) -> str:
        """Wrap an HTML fragment in the clinic header and footer."""
        return self._letterhead.render(
            subject=subject,
            content=content,
            patient_name=patient_name or ""
        )

