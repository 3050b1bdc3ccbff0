"""
Email/password authentication and the bootstrap admin account
"""
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pricemyfloor.core.config import BootstrapAdminConfig
from pricemyfloor.core.security import (
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    create_access_token,
    hash_password,
    verify_password,
)
from pricemyfloor.database.models import Profile, Role, User
from pricemyfloor.utils.exceptions import AuthenticationError, ValidationError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


def validate_new_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


def serialize_profile(user: User) -> Dict[str, Any]:
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "role": profile.role if profile else None,
        "retailer_id": profile.retailer_id if profile else None,
        "first_name": profile.first_name if profile else None,
        "last_name": profile.last_name if profile else None,
        "password_reset_required": profile.password_reset_required if profile else False,
    }


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def find_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == (email or "").strip().lower()).first()

    def login(self, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Check credentials and issue a bearer token.

        Raises:
            AuthenticationError: Unknown email, wrong password or disabled account
        """
        user = self.find_user_by_email(email or "")
        if not user or not user.is_active or not verify_password(password or "", user.password_hash):
            logger.warning(f"[yellow]⚠️  Failed login for[/yellow] {email}")
            raise AuthenticationError("Invalid email or password")

        role = user.profile.role if user.profile else Role.RETAILER
        token = create_access_token(user.id, role)
        logger.info(f"[green]✅ Login:[/green] {user.email} ({role})")
        return {"access_token": token, "token_type": "bearer", "user": serialize_profile(user)}

    def change_password(self, user: User, current_password: Optional[str], new_password: Optional[str]) -> None:
        if not verify_password(current_password or "", user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = hash_password(validate_new_password(new_password))
        if user.profile:
            user.profile.password_reset_required = False
            user.profile.temp_password_generated_at = None
        self.db.commit()
        logger.info(f"[green]✅ Password changed[/green] for {user.email}")

    def ensure_admin(self, config: BootstrapAdminConfig) -> User:
        """Create the configured admin account when it does not exist yet"""
        user = self.find_user_by_email(config.email)
        if user is not None:
            return user

        user = User(email=config.email.strip().lower(), password_hash=hash_password(config.password), is_active=True)
        self.db.add(user)
        self.db.flush()
        self.db.add(Profile(
            id=user.id,
            user=user,
            role=Role.ADMIN,
            first_name=config.first_name,
            last_name=config.last_name,
        ))
        self.db.commit()
        logger.info(f"[green]✅ Bootstrap admin created:[/green] {user.email}")
        return user
