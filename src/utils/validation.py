import re
from typing import Any, Optional

PH_MOBILE_PATTERN = re.compile(r'^\+639\d{9}$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

# Contact value meaning "intentionally absent"
CONTACT_SENTINEL = "n/a"


class InvalidPhoneFormat(ValueError):
    """Raised when a phone number is not a recognizable Philippine mobile number."""
    pass


def format_philippine_number(phone: Optional[str]) -> str:
    """
    Normalize a Philippine mobile number to E.164.

    Args:
        phone: Raw phone number (any separators allowed)

    Returns:
        Number in +639XXXXXXXXX form

    Raises:
        InvalidPhoneFormat: If the digits match none of the accepted shapes
    """
    if not phone:
        raise InvalidPhoneFormat("Phone number is required")

    raw = str(phone).strip()
    cleaned = re.sub(r'\D', '', raw)

    # Output of the 10-digit guess below, passed through again
    if raw.startswith('+') and cleaned.startswith('639') and len(cleaned) == 13:
        return f"+{cleaned}"

    if cleaned.startswith('639') and len(cleaned) == 12:
        return f"+{cleaned}"
    if cleaned.startswith('09') and len(cleaned) == 11:
        return f"+63{cleaned[1:]}"
    if cleaned.startswith('9') and len(cleaned) == 10:
        return f"+63{cleaned}"
    if len(cleaned) == 10:
        # Bare 10 digits without a mobile prefix: assume a local mobile number
        return f"+639{cleaned}"

    raise InvalidPhoneFormat("Invalid Philippine phone number format")


def is_valid_philippine_number(phone: Optional[str]) -> bool:
    """Check that a phone number normalizes to a +639XXXXXXXXX mobile number."""
    try:
        formatted = format_philippine_number(phone)
    except InvalidPhoneFormat:
        return False
    return bool(PH_MOBILE_PATTERN.match(formatted))


def is_valid_email(email: Optional[str]) -> bool:
    """Permissive single-@ email check (not RFC 5322)."""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def is_sentinel(value: Any) -> bool:
    """True for empty contact values and the N/A sentinel (any case)."""
    if value is None:
        return True
    text = str(value).strip()
    return not text or text.lower() == CONTACT_SENTINEL


def has_valid_phone(value: Any) -> bool:
    return not is_sentinel(value) and is_valid_philippine_number(str(value))


def has_valid_email(value: Any) -> bool:
    return not is_sentinel(value) and is_valid_email(str(value))


def mask_phone_number(phone_number: str) -> str:
    """Mask phone number for privacy in logs"""
    if phone_number and len(phone_number) > 6:
        return phone_number[:3] + "****" + phone_number[-3:]
    return "****"
