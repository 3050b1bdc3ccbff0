"""
Shared utilities: logging, domain errors and funnel helpers
"""
from pricemyfloor.utils.logging import get_logger, app_logger
from pricemyfloor.utils.exceptions import ErrorType, ExternalServiceError, ExternalServiceTimeout, FunctionError

__all__ = [
    "get_logger",
    "app_logger",
    "ErrorType",
    "ExternalServiceError",
    "ExternalServiceTimeout",
    "FunctionError",
]
