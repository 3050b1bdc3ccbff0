"""
Rich logging utility for colored terminal output
"""
import logging
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback
from pricemyfloor.core.config import settings

# Locals stay hidden: request handlers hold contact details and verification codes
install_traceback(show_locals=False)

# Twilio logs request bodies (phone numbers) at INFO
for _noisy in ("httpx", "twilio.http_client", "stripe"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

# Create a shared console instance
_console = Console()

_handler: Optional[RichHandler] = None


def _get_handler() -> RichHandler:
    """Build the RichHandler shared by every logger"""
    global _handler
    if _handler is None:
        _handler = RichHandler(
            console=_console,
            show_time=True,
            show_path=True,
            show_level=True,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=True,  # Enable rich markup in log messages
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
        _handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%Y-%m-%d %H:%M:%S]"))
    return _handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with Rich formatting and colors.
    All loggers share the same RichHandler for consistent output.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override (defaults to settings.log_level)

    Returns:
        Configured logger instance with RichHandler
    """
    logger = logging.getLogger(name)

    log_level = level.upper() if level else settings.log_level.upper()
    logger.setLevel(getattr(logging, log_level))

    # Avoid adding multiple handlers
    if not logger.handlers:
        logger.addHandler(_get_handler())

    # Prevent propagation to root logger to avoid duplicate messages
    logger.propagate = False

    return logger


def get_shared_logger() -> logging.Logger:
    """
    Get a shared application logger for application-wide events
    (startup, shutdown, bootstrap).
    """
    return get_logger("pricemyfloor")


# Create a shared application logger instance
app_logger = get_shared_logger()
