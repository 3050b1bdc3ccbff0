"""
Lead, distribution and purchase tables
"""
from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from pricemyfloor.database.models.base import BaseModel
from pricemyfloor.utils.helpers import utcnow


class LeadStatus:
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    EXPIRED = "expired"
    FAILED = "failed"
    DISTRIBUTED = "distributed"


class DistributionStatus:
    SENT = "sent"
    VIEWED = "viewed"
    RESPONDED = "responded"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_FAILED = "payment_failed"


class Lead(BaseModel):
    """
    A homeowner's flooring quote request.
    Maps to the 'leads' table.
    """
    __tablename__ = "leads"

    # Customer
    customer_name = Column(String(500), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50), nullable=True)

    # Location
    postal_code = Column(String(10), nullable=False)
    street_address = Column(String(500), nullable=True)
    address_city = Column(String(100), nullable=True)
    address_province = Column(String(50), nullable=True)
    address_formatted = Column(String(500), nullable=True)

    # Project
    brand_requested = Column(String(255), nullable=True)
    flooring_type = Column(String(100), nullable=True)
    project_type = Column(String(100), nullable=True)
    square_footage = Column(Integer, nullable=True)
    budget_range = Column(String(100), nullable=True)
    timeline = Column(String(100), nullable=True)
    installation_required = Column(Boolean, default=False, nullable=False)
    product_details = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    attachment_urls = Column(JSON, default=list, nullable=False)

    # Attribution
    utm_source = Column(String(255), nullable=True)
    utm_medium = Column(String(255), nullable=True)
    utm_campaign = Column(String(255), nullable=True)
    utm_term = Column(String(255), nullable=True)
    utm_content = Column(String(255), nullable=True)
    referrer = Column(String(1000), nullable=True)

    # Rate limiting
    client_ip = Column(String(64), nullable=True, index=True)
    user_agent = Column(String(500), nullable=True)

    # Verification
    verification_token = Column(String(128), nullable=True)
    verification_method = Column(String(10), nullable=True)
    verification_sent_at = Column(DateTime, nullable=True)
    verification_expires_at = Column(DateTime, nullable=True)
    verification_attempts = Column(Integer, default=0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    status = Column(String(30), default=LeadStatus.PENDING_VERIFICATION, nullable=False, index=True)

    # Exclusive purchase
    is_locked = Column(Boolean, default=False, nullable=False)
    lock_price = Column(Numeric(10, 2), nullable=True)
    assigned_retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=True)

    distributions = relationship("LeadDistribution", back_populates="lead", order_by="LeadDistribution.sent_at")


class LeadDistribution(BaseModel):
    """Delivery of a lead to one retailer"""
    __tablename__ = "lead_distributions"
    __table_args__ = (UniqueConstraint("lead_id", "retailer_id", name="uq_distribution_lead_retailer"),)

    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=False, index=True)
    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    lead_price = Column(Numeric(10, 2), nullable=False)
    charge_amount = Column(Numeric(10, 2), nullable=True)
    brand_matched = Column(String(255), nullable=True)
    status = Column(String(30), default=DistributionStatus.SENT, nullable=False)
    was_paid = Column(Boolean, default=False, nullable=False)
    payment_method = Column(String(30), nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    distribution_method = Column(String(30), default="automatic", nullable=False)
    sent_at = Column(DateTime, default=utcnow, nullable=False)
    viewed_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    lead = relationship("Lead", back_populates="distributions")
    retailer = relationship("Retailer", back_populates="distributions")


class LeadPurchase(BaseModel):
    """Exclusive lock of a lead by a retailer"""
    __tablename__ = "lead_purchases"

    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=False, unique=True)
    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    purchase_price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="CAD", nullable=False)
    purchase_method = Column(String(30), nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    purchased_at = Column(DateTime, default=utcnow, nullable=False)
