"""
Retailer, application and brand subscription tables
"""
from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, Date, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from pricemyfloor.database.models.base import BaseModel


class RetailerStatus:
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, SUSPENDED, REJECTED)


class ApplicationStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Retailer(BaseModel):
    """
    A flooring business receiving leads.
    Maps to the 'retailers' table.
    """
    __tablename__ = "retailers"

    # Business profile
    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(50), nullable=True)
    postal_code = Column(String(10), nullable=True)
    website = Column(String(500), nullable=True)
    business_description = Column(Text, nullable=True)
    years_in_business = Column(Integer, nullable=True)
    brands_carried = Column(JSON, default=list, nullable=False)
    services_offered = Column(JSON, default=list, nullable=False)
    service_areas = Column(JSON, default=list, nullable=False)
    insurance_provider = Column(String(255), nullable=True)
    business_license = Column(String(255), nullable=True)
    business_references = Column(Text, nullable=True)

    # Coverage and matching
    postal_code_prefixes = Column(JSON, default=list, nullable=False)
    installation_preference = Column(String(10), default="both", nullable=False)

    # Billing
    current_balance = Column(Numeric(10, 2), default=0, nullable=False)
    monthly_budget_cap = Column(Numeric(10, 2), nullable=True)
    auto_pay_enabled = Column(Boolean, default=False, nullable=False)
    stripe_customer_id = Column(String(255), nullable=True)
    next_billing_date = Column(Date, nullable=True)

    status = Column(String(20), default=RetailerStatus.PENDING, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    subscriptions = relationship("BrandSubscription", back_populates="retailer", order_by="BrandSubscription.brand_name")
    distributions = relationship("LeadDistribution", back_populates="retailer")


class RetailerApplication(BaseModel):
    """Partner application submitted before a retailer account exists"""
    __tablename__ = "retailer_applications"

    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    business_address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=False)
    postal_code = Column(String(10), nullable=False)
    website = Column(String(500), nullable=True)
    business_description = Column(Text, nullable=True)
    years_in_business = Column(Integer, nullable=True)
    brands_carried = Column(JSON, default=list, nullable=False)
    services_offered = Column(JSON, default=list, nullable=False)
    service_areas = Column(JSON, default=list, nullable=False)
    insurance_provider = Column(String(255), nullable=True)
    business_license = Column(String(255), nullable=True)
    business_references = Column(Text, nullable=True)

    status = Column(String(20), default=ApplicationStatus.PENDING, nullable=False, index=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)


class BrandSubscription(BaseModel):
    """A retailer's subscription to one brand for one square-footage tier"""
    __tablename__ = "brand_subscriptions"
    __table_args__ = (
        UniqueConstraint("retailer_id", "brand_name", "sqft_tier", name="uq_subscription_retailer_brand_tier"),
    )

    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    brand_name = Column(String(255), nullable=False)
    sqft_tier = Column(String(20), nullable=False)
    sqft_tier_min = Column(Integer, nullable=False)
    sqft_tier_max = Column(Integer, nullable=True)  # None means open-ended
    accepts_installation = Column(Boolean, default=False, nullable=False)
    lead_price = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    retailer = relationship("Retailer", back_populates="subscriptions")
