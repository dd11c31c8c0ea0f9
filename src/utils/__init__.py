from .validation import (
    InvalidPhoneFormat,
    format_philippine_number,
    is_valid_philippine_number,
    is_valid_email,
    is_sentinel,
    has_valid_phone,
    has_valid_email,
    mask_phone_number
)

__all__ = [
    # Phone numbers
    "InvalidPhoneFormat",
    "format_philippine_number",
    "is_valid_philippine_number",
    "mask_phone_number",
    # Email
    "is_valid_email",
    # Contact fields
    "is_sentinel",
    "has_valid_phone",
    "has_valid_email",
]
