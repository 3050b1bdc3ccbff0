"""
Base model class for all database models
"""
import uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, String, DateTime

from pricemyfloor.utils.helpers import utcnow

Base = declarative_base()


def new_uuid() -> str:
    return str(uuid.uuid4())


class BaseModel(Base):
    """
    Abstract base model with common fields.
    All database models should inherit from this.
    """
    __abstract__ = True

    id = Column(String(36), primary_key=True, default=new_uuid)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
