"""
Patient SMS Templates

Plain-text message bodies sent through the SMS gateway. Variables use
Jinja2 syntax and are rendered without HTML escaping.
"""

from typing import Dict

__all__ = ['SMS_TEMPLATES']


SMS_TEMPLATES: Dict[str, str] = {
    "appointment_reminder": (
        "Hi {{ patientName }}! This is a reminder that you have an appointment "
        "scheduled for {{ date }} at {{ time }}. Please arrive 15 minutes early. "
        "- Maybunga Health Center"
    ),
    "appointment_confirmation": (
        "Your appointment has been confirmed for {{ date }} at {{ time }}. "
        "Location: Maybunga Health Center. For questions, please call us. Thank you!"
    ),
    "vaccination_reminder": (
        "Hi {{ patientName }}! Your {{ vaccineName }} vaccination is due on "
        "{{ dueDate }}. Please schedule an appointment. - Maybunga Health Center"
    ),
    "checkup_reminder": (
        "Hello {{ patientName }}! It's time for your regular health checkup. "
        "Please visit us or call to schedule an appointment. - Maybunga Health Center"
    ),
    "prescription_ready": (
        "Hi {{ patientName }}! Your prescription is ready for pickup at Maybunga "
        "Health Center. Please bring a valid ID. Operating hours: 8AM-5PM."
    ),
    "emergency_alert": (
        "EMERGENCY ALERT: {{ message }} Please contact Maybunga Health Center "
        "immediately or go to the nearest hospital."
    ),
    "general_announcement": "{{ message }} - Maybunga Health Center",
}
