"""
Authentication schemas
"""
from typing import Optional
from pydantic import Field

from pricemyfloor.schemas.base import BaseSchema


class LoginRequest(BaseSchema):
    email: str
    password: str


class ChangePasswordRequest(BaseSchema):
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")


class UserProfile(BaseSchema):
    id: str
    email: str
    role: Optional[str] = None
    retailer_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password_reset_required: bool = False


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile
