"""
Flooring brand catalogue
"""
from sqlalchemy import Column, String, Text, Boolean, JSON

from pricemyfloor.database.models.base import BaseModel


class FlooringBrand(BaseModel):
    """A brand homeowners can request quotes for"""
    __tablename__ = "flooring_brands"

    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    categories = Column(JSON, default=list, nullable=False)
    description = Column(Text, nullable=True)
    logo_url = Column(String(1000), nullable=True)
    website = Column(String(1000), nullable=True)
    installation = Column(String(255), nullable=True)
    featured = Column(Boolean, default=False, nullable=False)
