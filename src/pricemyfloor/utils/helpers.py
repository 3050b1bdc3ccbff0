"""
General helper functions
"""
import secrets
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO string"""
    return dt.isoformat() if dt else None


def to_decimal(value: Union[int, float, str, Decimal, None]) -> Decimal:
    """Money value rounded to cents"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_cents(value: Union[int, float, str, Decimal, None]) -> int:
    """Convert a dollar amount to integer cents"""
    return int(to_decimal(value) * 100)


def money(value: Union[Decimal, float, None]) -> Optional[float]:
    """Render a stored money value for JSON responses"""
    return float(value) if value is not None else None


def random_digits(length: int = 6) -> str:
    """Numeric one-time code drawn from the OS CSPRNG"""
    return "".join(secrets.choice("0123456789") for _ in range(length))


TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"


def generate_temp_password(length: int = 12) -> str:
    """Temporary password without look-alike characters (0/O, 1/l/I)"""
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
