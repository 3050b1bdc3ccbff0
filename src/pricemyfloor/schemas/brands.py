"""
Flooring brand schemas
"""
from typing import List, Optional
from pydantic import Field

from pricemyfloor.schemas.base import BaseSchema, BaseResponseSchema


class BrandBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = None
    categories: List[str] = []
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    installation: Optional[str] = None
    featured: bool = False


class BrandCreate(BrandBase):
    pass


class BrandUpdate(BaseSchema):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = None
    categories: Optional[List[str]] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    installation: Optional[str] = None
    featured: Optional[bool] = None


class BrandResponse(BrandBase, BaseResponseSchema):
    slug: str
