"""
Base schema classes
"""
from pydantic import BaseModel as PydanticBaseModel
from datetime import datetime
from typing import Optional


class BaseSchema(PydanticBaseModel):
    """Base schema with common configuration"""

    class Config:
        from_attributes = True  # Allows ORM mode (formerly orm_mode)
        populate_by_name = True  # Accept field names as well as camelCase aliases


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IDSchema(BaseSchema):
    """Schema with ID field"""
    id: str


class BaseResponseSchema(TimestampSchema, IDSchema):
    """Base response schema with common fields"""
    pass
