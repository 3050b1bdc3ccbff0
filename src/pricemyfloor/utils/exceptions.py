"""
Custom exception classes
"""
from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class ErrorType:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_BRAND = "INVALID_BRAND"
    LEAD_NOT_FOUND = "LEAD_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    VERIFICATION_SEND_FAILED = "VERIFICATION_SEND_FAILED"
    VERIFICATION_EXPIRED = "VERIFICATION_EXPIRED"
    INVALID_CODE = "INVALID_CODE"
    RESEND_COOLDOWN = "RESEND_COOLDOWN"
    TIMEOUT = "TIMEOUT"
    DATABASE_UPDATE_FAILED = "DATABASE_UPDATE_FAILED"
    PAYMENT_ERROR = "PAYMENT_ERROR"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    GENERAL_ERROR = "GENERAL_ERROR"


class FunctionError(HTTPException):
    """
    Domain error rendered as {"success": false, "error", "errorType", "details"?}.
    """
    def __init__(
        self,
        detail: str,
        error_type: str = ErrorType.GENERAL_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.error_type = error_type
        self.details = details
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.detail, "errorType": self.error_type}
        if self.details:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(FunctionError):
    """Exception raised for invalid request input"""
    def __init__(self, detail: str, details: Optional[str] = None):
        super().__init__(detail, ErrorType.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST, details)


class NotFoundError(FunctionError):
    """Exception raised when a record does not exist"""
    def __init__(self, detail: str, error_type: str = ErrorType.NOT_FOUND):
        super().__init__(detail, error_type, status.HTTP_404_NOT_FOUND)


class RateLimitedError(FunctionError):
    """Exception raised when a caller exceeds a request budget"""
    def __init__(self, detail: str, error_type: str = ErrorType.RATE_LIMITED):
        super().__init__(detail, error_type, status.HTTP_429_TOO_MANY_REQUESTS)


class ConflictError(FunctionError):
    """Exception raised when a write collides with existing state"""
    def __init__(self, detail: str):
        super().__init__(detail, ErrorType.CONFLICT, status.HTTP_409_CONFLICT)


class PaymentError(FunctionError):
    """Exception raised when Stripe rejects a billing operation"""
    def __init__(self, detail: str, status_code: int = status.HTTP_402_PAYMENT_REQUIRED):
        super().__init__(detail, ErrorType.PAYMENT_ERROR, status_code)


class AuthenticationError(FunctionError):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail, ErrorType.UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(FunctionError):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(detail, ErrorType.FORBIDDEN, status.HTTP_403_FORBIDDEN)



class ExternalServiceError(Exception):
    """
    Raised by the third-party clients (Resend, Twilio, Stripe).
    Services translate it into a FunctionError.
    """
    def __init__(self, service: str, message: str, status_code: Optional[int] = None, code: Optional[Any] = None):
        super().__init__(message)
        self.service = service
        self.message = message
        self.status_code = status_code
        self.code = code


class ExternalServiceTimeout(ExternalServiceError):
    """Raised when a third-party call exceeds its time budget"""
    def __init__(self, service: str, seconds: float):
        super().__init__(service, f"{service} request timed out after {seconds:g} seconds")
        self.seconds = seconds
