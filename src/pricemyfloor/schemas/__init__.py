"""
Pydantic schemas for request/response validation
"""
from pricemyfloor.schemas.base import (
    BaseSchema,
    TimestampSchema,
    IDSchema,
    BaseResponseSchema,
)
from pricemyfloor.schemas.leads import (
    LeadSubmission,
    LeadSubmissionResponse,
    TempLeadRequest,
    SendVerificationRequest,
    VerifyLeadRequest,
    DistributeLeadRequest,
    ChargeLeadPaymentRequest,
)
from pricemyfloor.schemas.retailers import (
    ApplicationCreate,
    RetailerSettingsUpdate,
    CoverageUpdate,
    TierToggle,
    InstallationToggle,
    SubscriptionUpdate,
    CreateRetailerAccountRequest,
    ResendCredentialsRequest,
    RejectApplicationRequest,
    RetailerStatusUpdate,
)
from pricemyfloor.schemas.brands import BrandCreate, BrandUpdate, BrandResponse
from pricemyfloor.schemas.billing import (
    SavePaymentMethodRequest,
    PurchaseCreditsRequest,
    SetupIntentResponse,
)
from pricemyfloor.schemas.auth import LoginRequest, ChangePasswordRequest, UserProfile, TokenResponse

__all__ = [
    # Base schemas
    "BaseSchema",
    "TimestampSchema",
    "IDSchema",
    "BaseResponseSchema",
    # Lead funnel schemas
    "LeadSubmission",
    "LeadSubmissionResponse",
    "TempLeadRequest",
    "SendVerificationRequest",
    "VerifyLeadRequest",
    "DistributeLeadRequest",
    "ChargeLeadPaymentRequest",
    # Retailer schemas
    "ApplicationCreate",
    "RetailerSettingsUpdate",
    "CoverageUpdate",
    "TierToggle",
    "InstallationToggle",
    "SubscriptionUpdate",
    "CreateRetailerAccountRequest",
    "ResendCredentialsRequest",
    "RejectApplicationRequest",
    "RetailerStatusUpdate",
    # Brand schemas
    "BrandCreate",
    "BrandUpdate",
    "BrandResponse",
    # Billing schemas
    "SavePaymentMethodRequest",
    "PurchaseCreditsRequest",
    "SetupIntentResponse",
    # Auth schemas
    "LoginRequest",
    "ChangePasswordRequest",
    "UserProfile",
    "TokenResponse",
]
