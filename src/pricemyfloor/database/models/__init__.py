"""
Database models module
"""
from pricemyfloor.database.models.base import Base, BaseModel
from pricemyfloor.database.models.audit import AdminAction, AnalyticsEvent
from pricemyfloor.database.models.billing import (
    BillingRecord,
    PaymentMethod,
    PaymentTransaction,
    PaymentType,
    RetailerLeadCredits,
    TransactionStatus,
)
from pricemyfloor.database.models.brands import FlooringBrand
from pricemyfloor.database.models.leads import (
    DistributionStatus,
    Lead,
    LeadDistribution,
    LeadPurchase,
    LeadStatus,
)
from pricemyfloor.database.models.retailers import (
    ApplicationStatus,
    BrandSubscription,
    Retailer,
    RetailerApplication,
    RetailerStatus,
)
from pricemyfloor.database.models.users import Profile, Role, User

__all__ = [
    "Base",
    "BaseModel",
    "AdminAction",
    "AnalyticsEvent",
    "BillingRecord",
    "PaymentMethod",
    "PaymentTransaction",
    "PaymentType",
    "RetailerLeadCredits",
    "TransactionStatus",
    "FlooringBrand",
    "DistributionStatus",
    "Lead",
    "LeadDistribution",
    "LeadPurchase",
    "LeadStatus",
    "ApplicationStatus",
    "BrandSubscription",
    "Retailer",
    "RetailerApplication",
    "RetailerStatus",
    "Profile",
    "Role",
    "User",
]
