"""Phone and OTP input normalization"""

import re

from ..utils.exceptions import InvalidInputError

_SEPARATORS = re.compile(r"[\s\-()]")
_DIGITS = re.compile(r"^\d+$")
_OTP = re.compile(r"^\d{6}$")


def normalize_phone(identifier: str, country_code: str = "91") -> str:
    """
    Reduce a phone number to its 10-digit national form.

    "+91 98765-43210", "098765 43210" and "(987) 654-3210" all normalize to
    "9876543210".

    Raises:
        InvalidInputError: empty input or not 10 digits after normalization
    """
    if not identifier or not str(identifier).strip():
        raise InvalidInputError("Phone number is required")

    phone = _SEPARATORS.sub("", str(identifier).strip())
    phone = re.sub(rf"^(\+{re.escape(country_code)}|0)+", "", phone)
    if not _DIGITS.match(phone):
        raise InvalidInputError("Please provide a valid 10-digit phone number")
    if len(phone) > 10 and phone.startswith(country_code):
        phone = phone[len(country_code):]
    if len(phone) != 10:
        raise InvalidInputError("Please provide a valid 10-digit phone number")
    return phone


def validate_otp_format(code: str) -> str:
    if not code or not _OTP.match(str(code).strip()):
        raise InvalidInputError("OTP must be a 6-digit code")
    return str(code).strip()
