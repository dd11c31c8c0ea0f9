"""
Patient Email Templates

HTML fragments, subjects and the clinic letterhead used for email
notifications. Fragments are rendered into the letterhead's content block.
"""

from typing import Dict

__all__ = [
    'EMAIL_SUBJECTS',
    'EMAIL_TEMPLATES',
    'DEFAULT_SUBJECT',
    'FALLBACK_TEMPLATE',
    'LETTERHEAD_TEMPLATE'
]


DEFAULT_SUBJECT = "Notification from Maybunga Health Center"

EMAIL_SUBJECTS: Dict[str, str] = {
    "appointment_reminder": "Appointment Reminder - Maybunga Health Center",
    "appointment_confirmation": "Appointment Confirmed - Maybunga Health Center",
    "vaccination_reminder": "{{ vaccineName }} Vaccination Reminder",
    "checkup_reminder": "Health Checkup Reminder",
    "prescription_ready": "Prescription Ready for Pickup",
    "lab_results_ready": "Laboratory Results Available",
    "emergency_alert": "🚨 URGENT: Health Alert",
    "general_announcement": "Important Announcement - Maybunga Health Center",
}

FALLBACK_TEMPLATE = "<p>{{ message }}</p>"

EMAIL_TEMPLATES: Dict[str, str] = {
    "appointment_reminder": """
        <div class="highlight">
          <h3>🗓️ Appointment Reminder</h3>
          <p>You have an appointment scheduled for:</p>
          <ul>
            <li><strong>Date:</strong> {{ date }}</li>
            <li><strong>Time:</strong> {{ time }}</li>
            <li><strong>Type:</strong> {{ type or 'Check-up' }}</li>
          </ul>
          <p>Please arrive 15 minutes early for check-in.</p>
        </div>
        <p>If you need to reschedule, please contact us as soon as possible.</p>
    """,

    "appointment_confirmation": """
        <div class="highlight">
          <h3>✅ Appointment Confirmed</h3>
          <p>Your appointment has been successfully scheduled:</p>
          <ul>
            <li><strong>Date:</strong> {{ date }}</li>
            <li><strong>Time:</strong> {{ time }}</li>
            <li><strong>Doctor:</strong> {{ doctor or 'Staff Doctor' }}</li>
          </ul>
        </div>
        <p>We look forward to seeing you. Please bring a valid ID and any relevant medical documents.</p>
    """,

    "vaccination_reminder": """
        <div class="highlight">
          <h3>💉 Vaccination Reminder</h3>
          <p>It's time for your <strong>{{ vaccineName }}</strong> vaccination.</p>
          <p><strong>Due Date:</strong> {{ dueDate }}</p>
        </div>
        <p>Please schedule an appointment with us to receive your vaccination. This is important for your health and protection.</p>
        <a href="#" class="button">Schedule Appointment</a>
    """,

    "checkup_reminder": """
        <div class="highlight">
          <h3>🏥 Health Checkup Reminder</h3>
          <p>It's time for your regular health checkup!</p>
          <p>Regular checkups help us monitor your health and catch any potential issues early.</p>
        </div>
        <p>Please contact us to schedule your appointment.</p>
        <a href="#" class="button">Book Checkup</a>
    """,

    "prescription_ready": """
        <div class="highlight">
          <h3>💊 Prescription Ready</h3>
          <p>Your prescription is ready for pickup!</p>
          <p><strong>Available:</strong> {{ availableDate or 'Now' }}</p>
        </div>
        <p>Please visit our clinic during operating hours and bring a valid ID for pickup.</p>
        <p><strong>Operating Hours:</strong> Monday-Friday, 8:00 AM - 5:00 PM</p>
    """,

    "lab_results_ready": """
        <div class="highlight">
          <h3>🔬 Laboratory Results Ready</h3>
          <p>Your laboratory test results are now available.</p>
          <p><strong>Test Date:</strong> {{ testDate }}</p>
        </div>
        <p>Please visit our clinic to collect your results and discuss them with our healthcare team.</p>
        <a href="#" class="button">Schedule Consultation</a>
    """,

    "general_announcement": """
        <div class="highlight">
          <h3>📢 Important Announcement</h3>
          <p>{{ message }}</p>
        </div>
        <p>Thank you for your attention and cooperation.</p>
    """,
}

LETTERHEAD_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
    <style>
        body {
            font-family: Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }
        .header {
            background-color: #0ea5e9;
            color: white;
            padding: 20px;
            text-align: center;
            border-radius: 8px 8px 0 0;
        }
        .content {
            background-color: #f8f9fa;
            padding: 30px;
            border-radius: 0 0 8px 8px;
            border: 1px solid #dee2e6;
        }
        .footer {
            margin-top: 20px;
            padding: 15px;
            background-color: #e9ecef;
            border-radius: 8px;
            text-align: center;
            font-size: 0.9em;
            color: #6c757d;
        }
        .button {
            display: inline-block;
            background-color: #0ea5e9;
            color: white;
            padding: 12px 24px;
            text-decoration: none;
            border-radius: 6px;
            margin: 10px 0;
        }
        .highlight {
            background-color: #fff3cd;
            border: 1px solid #ffeaa7;
            padding: 15px;
            border-radius: 6px;
            margin: 15px 0;
        }
    </style>
</head>
<body>
    <div class="header">
        <h1>Maybunga Health Center</h1>
        <p>Barangay Maybunga, Pasig City</p>
    </div>

    <div class="content">
        {% if patient_name %}<h2>Hello {{ patient_name }}!</h2>{% else %}<h2>Hello!</h2>{% endif %}
        {{ content | safe }}
    </div>

    <div class="footer">
        <p><strong>Maybunga Health Center</strong></p>
        <p>📍 Barangay Maybunga, Pasig City, Metro Manila</p>
        <p>📞 Contact: (02) 8xxx-xxxx | ✉️ Email: info@maybunga.health</p>
        <p>🕒 Operating Hours: Monday-Friday 8:00 AM - 5:00 PM</p>
        <hr style="margin: 15px 0;">
        <small>This is an automated message from Maybunga Health Center. Please do not reply to this email.</small>
    </div>
</body>
</html>
"""
