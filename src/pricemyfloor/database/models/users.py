"""
Login accounts and profiles
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from pricemyfloor.database.models.base import BaseModel


class Role:
    ADMIN = "admin"
    RETAILER = "retailer"


class User(BaseModel):
    """Email/password account"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False)


class Profile(BaseModel):
    """Role and retailer link for a user; shares the user's id"""
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("users.id"), primary_key=True)
    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), default=Role.RETAILER, nullable=False)
    password_reset_required = Column(Boolean, default=False, nullable=False)
    temp_password_generated_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="profile")
