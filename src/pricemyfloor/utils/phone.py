"""
Phone number validation and E.164 normalisation (Canadian default region)
"""
import re
from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from pricemyfloor.utils.exceptions import ValidationError

DEFAULT_REGION = "CA"

CANADIAN_AREA_CODES = frozenset({
    "204", "226", "236", "249", "250", "289", "306", "343", "365", "403",
    "416", "418", "431", "437", "438", "450", "506", "514", "519", "548",
    "579", "581", "587", "604", "613", "639", "647", "672", "705", "709",
    "742", "778", "780", "782", "807", "819", "825", "867", "873", "902",
    "905",
})

_LOOSE_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")


def is_plausible_phone(phone: str) -> bool:
    """Cheap shape check used by lead intake; punctuation is ignored"""
    return bool(_LOOSE_PHONE_RE.match(re.sub(r"[\s\-()]", "", phone or "")))


def _fallback_e164(digits: str) -> Optional[str]:
    if len(digits) == 10 and digits[:3] in CANADIAN_AREA_CODES:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return None


def normalize_phone(phone: str, region: str = DEFAULT_REGION) -> str:
    """
    Normalise a phone number to E.164.

    Args:
        phone: Raw user input, with or without country code
        region: Region assumed when no country code is given

    Returns:
        The number in E.164 format, e.g. +14165550123

    Raises:
        ValidationError: If the number is missing or invalid
    """
    if not phone or not phone.strip():
        raise ValidationError("Phone number is required")

    try:
        parsed = phonenumbers.parse(phone, region)
    except NumberParseException:
        formatted = _fallback_e164(re.sub(r"\D", "", phone))
        if formatted:
            return formatted
        raise ValidationError("Please enter a valid Canadian phone number (10 digits)")

    if not phonenumbers.is_valid_number(parsed):
        raise ValidationError(
            "Invalid phone number format",
            details="Please check your phone number format and try again.",
        )

    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def format_phone_display(phone: str, region: str = DEFAULT_REGION) -> str:
    """National format for display, e.g. (416) 555-0123"""
    try:
        return phonenumbers.format_number(phonenumbers.parse(phone, region), PhoneNumberFormat.NATIONAL)
    except NumberParseException:
        return phone
