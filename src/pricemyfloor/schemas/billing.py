"""
Billing request and response schemas
"""
from typing import Optional
from pydantic import Field

from pricemyfloor.schemas.base import BaseSchema


class SavePaymentMethodRequest(BaseSchema):
    payment_method_id: Optional[str] = Field(None, alias="paymentMethodId")


class PurchaseCreditsRequest(BaseSchema):
    package_type: Optional[str] = Field(None, alias="packageType")


class SetupIntentResponse(BaseSchema):
    client_secret: str = Field(..., alias="clientSecret")
    customer_id: str = Field(..., alias="customerId")
