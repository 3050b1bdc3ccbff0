"""
Shared dependencies for FastAPI routes
"""
from typing import Generator, Optional

import jwt as pyjwt
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.core.security import decode_access_token
from pricemyfloor.database.models import Retailer, Role, User
from pricemyfloor.database.session import get_session
from pricemyfloor.external.messaging.resend_client import ResendClient
from pricemyfloor.external.messaging.twilio_verify import TwilioVerifyClient
from pricemyfloor.external.payments.stripe_client import StripeClient
from pricemyfloor.utils.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError


def get_db() -> Generator:
    """
    Database session dependency.
    Yields a database session from the pool and ensures it's closed after use.
    """
    db = get_session()
    try:
        yield db
    finally:
        db.close()


def get_client_ip(request: Request) -> str:
    """
    Caller address used for rate limiting and audit rows.

    Forwarding headers are only trusted when the socket peer is a
    configured proxy.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in settings.security.trusted_proxies:
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    return real_ip or peer


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "unknown")


# Third-party clients, overridden with fakes in tests

def get_email_client() -> ResendClient:
    return ResendClient()


def get_sms_client() -> TwilioVerifyClient:
    return TwilioVerifyClient()


def get_stripe_client() -> StripeClient:
    return StripeClient()


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        claims = decode_access_token(token)
    except pyjwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")

    user = db.get(User, claims.get("sub"))
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.profile or user.profile.role != Role.ADMIN:
        raise PermissionDeniedError("Admin access required")
    return user


def require_retailer(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Retailer:
    """The retailer linked to the caller's profile"""
    profile = user.profile
    if not profile or profile.role != Role.RETAILER or not profile.retailer_id:
        raise PermissionDeniedError("Retailer access required")
    retailer = db.get(Retailer, profile.retailer_id)
    if not retailer:
        raise NotFoundError("Retailer not found")
    return retailer
