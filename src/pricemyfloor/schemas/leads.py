"""
Quote funnel request and response schemas
"""
from typing import List, Optional
from pydantic import AliasChoices, Field

from pricemyfloor.schemas.base import BaseSchema


class LeadSubmission(BaseSchema):
    """
    Public quote form payload.
    Required fields are checked by the intake service so that missing
    values produce the funnel's own 400 response.
    """
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    postal_code: Optional[str] = None
    brand_requested: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    flooring_type: Optional[str] = None
    project_type: Optional[str] = None
    project_size: Optional[str] = None  # free text such as "500-1000 sq ft"
    square_footage: Optional[int] = Field(None, ge=0)
    budget_range: Optional[str] = None
    timeline: Optional[str] = None
    installation_required: bool = False
    product_details: Optional[str] = None
    notes: Optional[str] = None
    attachment_urls: List[str] = []
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None


class LeadSubmissionResponse(BaseSchema):
    success: bool
    message: str
    lead_id: str
    verification_required: bool


class TempLeadRequest(BaseSchema):
    email: Optional[str] = None
    phone: Optional[str] = None
    method: Optional[str] = None


class SendVerificationRequest(BaseSchema):
    lead_id: Optional[str] = Field(None, alias="leadId")
    method: Optional[str] = None
    contact: Optional[str] = None


class VerifyLeadRequest(BaseSchema):
    lead_id: Optional[str] = Field(None, alias="leadId")
    token: Optional[str] = Field(None, validation_alias=AliasChoices("token", "code"))


class DistributeLeadRequest(BaseSchema):
    lead_id: Optional[str] = Field(None, alias="leadId")


class ChargeLeadPaymentRequest(BaseSchema):
    distribution_id: Optional[str] = Field(None, alias="distributionId")
    amount: Optional[float] = Field(None, gt=0)
