"""
Password hashing and access tokens
"""
from datetime import timedelta
from typing import Dict, Any, Optional

import bcrypt
import jwt as pyjwt

from pricemyfloor.core.config import settings
from pricemyfloor.utils.helpers import utcnow

# bcrypt ignores (newer releases reject) anything past 72 bytes
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def create_access_token(subject: str, role: str, expires_minutes: Optional[int] = None) -> str:
    """
    Sign a bearer token for a user.

    Args:
        subject: User id
        role: Profile role, copied into the token for the client
        expires_minutes: Lifetime override (defaults to security.access_token_expire_minutes)
    """
    minutes = expires_minutes or settings.security.access_token_expire_minutes
    issued = utcnow()
    payload = {
        "sub": subject,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(minutes=minutes),
    }
    return pyjwt.encode(payload, settings.security.secret_key, algorithm=settings.security.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Raises:
        jwt.PyJWTError: If the token is malformed, tampered with or expired
    """
    return pyjwt.decode(token, settings.security.secret_key, algorithms=[settings.security.algorithm])
