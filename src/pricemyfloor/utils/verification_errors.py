"""
Maps provider error text onto user-facing failure categories
"""
from typing import Tuple

AUTH_FAILURE = "auth_failure"
INVALID_PHONE = "invalid_phone"
TIMEOUT = "timeout"
SERVICE_UNAVAILABLE = "service_unavailable"
UNKNOWN = "unknown"

# Checked in order; the first matching category wins
_CATEGORY_MARKERS = (
    (TIMEOUT, ("timed out", "timeout")),
    (AUTH_FAILURE, ("authentication failed", "auth token", "account sid", "unauthorized", "api key is invalid", "invalid api key")),
    (INVALID_PHONE, ("phone number", "invalid phone", "not verified", "country code")),
    (SERVICE_UNAVAILABLE, ("not configured", "service not found", "unavailable", "network", "502", "503")),
)


def classify_failure(message: str) -> str:
    text = (message or "").lower()
    for category, markers in _CATEGORY_MARKERS:
        if any(marker in text for marker in markers):
            return category
    return UNKNOWN


def user_message(category: str, method: str) -> str:
    """Copy shown under the error toast"""
    if category == AUTH_FAILURE:
        if method == "sms":
            return "SMS verification is temporarily unavailable. Please use email verification instead."
        return "Email verification is temporarily unavailable. Please try again later."
    if category == INVALID_PHONE:
        return "Please check your phone number format and try again."
    if category == TIMEOUT:
        return "The verification service took too long to respond. Please try again."
    if category == SERVICE_UNAVAILABLE:
        if method == "sms":
            return "SMS verification is currently unavailable. Please use email verification instead."
        return "The verification service is currently unavailable. Please try again shortly."
    return "Please try again or contact support if the issue persists."


def describe_failure(message: str, method: str) -> Tuple[str, str]:
    """Return (category, user copy) for a provider error message"""
    category = classify_failure(message)
    return category, user_message(category, method)
