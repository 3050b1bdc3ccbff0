"""
Retailer application, dashboard and account schemas
"""
from decimal import Decimal
from typing import List, Optional
from pydantic import Field

from pricemyfloor.schemas.base import BaseSchema


class ApplicationCreate(BaseSchema):
    """Public partner application form"""
    business_name: str = Field(..., min_length=1, max_length=255)
    contact_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    phone: str = Field(..., min_length=7, max_length=50)
    business_address: Optional[str] = None
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=6, max_length=10)
    website: Optional[str] = None
    business_description: Optional[str] = None
    years_in_business: Optional[int] = Field(None, ge=0)
    brands_carried: List[str] = []
    services_offered: List[str] = []
    service_areas: List[str] = []
    insurance_provider: Optional[str] = None
    business_license: Optional[str] = None
    business_references: Optional[str] = None


class RetailerSettingsUpdate(BaseSchema):
    """Fields a retailer may change on their own profile"""
    contact_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    website: Optional[str] = None
    business_description: Optional[str] = None
    installation_preference: Optional[str] = None
    monthly_budget_cap: Optional[Decimal] = None
    auto_pay_enabled: Optional[bool] = None


class CoverageUpdate(BaseSchema):
    postal_code_prefixes: List[str] = []


class TierToggle(BaseSchema):
    brand_name: str
    sqft_tier: str
    enabled: bool = True


class InstallationToggle(BaseSchema):
    accepts_installation: bool


class SubscriptionUpdate(BaseSchema):
    lead_price: Optional[Decimal] = None
    sqft_tier_min: Optional[int] = None
    sqft_tier_max: Optional[int] = None
    is_active: Optional[bool] = None


class CreateRetailerAccountRequest(BaseSchema):
    application_id: Optional[str] = Field(None, alias="applicationId")


class ResendCredentialsRequest(BaseSchema):
    retailer_id: Optional[str] = Field(None, alias="retailerId")


class RejectApplicationRequest(BaseSchema):
    reason: Optional[str] = None


class RetailerStatusUpdate(BaseSchema):
    status: str
