"""
Payment methods, billing records, transactions and lead credits
"""
from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, Date, DateTime, ForeignKey

from pricemyfloor.database.models.base import BaseModel


class PaymentType:
    LEAD_PAYMENT = "lead_payment"
    CREDIT_DEDUCTION = "credit_deduction"
    CREDIT_PURCHASE = "credit_purchase"


class TransactionStatus:
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    COMPLETED = "completed"


class PaymentMethod(BaseModel):
    """A card saved on the retailer's Stripe customer"""
    __tablename__ = "payment_methods"

    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    stripe_payment_method_id = Column(String(255), unique=True, nullable=False)
    card_brand = Column(String(30), nullable=True)
    card_last4 = Column(String(4), nullable=True)
    card_exp_month = Column(Integer, nullable=True)
    card_exp_year = Column(Integer, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)


class BillingRecord(BaseModel):
    """Charge line shown on the retailer's billing page"""
    __tablename__ = "billing_records"

    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    lead_distribution_id = Column(String(36), ForeignKey("lead_distributions.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    billing_type = Column(String(30), nullable=False)
    billing_period_start = Column(Date, nullable=True)
    billing_period_end = Column(Date, nullable=True)
    status = Column(String(20), default="pending", nullable=False)


class PaymentTransaction(BaseModel):
    """Money movement: card charges, credit deductions and credit purchases"""
    __tablename__ = "payment_transactions"

    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)
    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), default="cad", nullable=False)
    payment_type = Column(String(30), nullable=False)
    status = Column(String(20), default=TransactionStatus.PENDING, nullable=False)
    description = Column(Text, nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)
    stripe_charge_id = Column(String(255), nullable=True)
    stripe_fee_cents = Column(Integer, nullable=True)
    net_amount_cents = Column(Integer, nullable=True)


class RetailerLeadCredits(BaseModel):
    """Prepaid lead credit balance, one row per retailer"""
    __tablename__ = "retailer_lead_credits"

    retailer_id = Column(String(36), ForeignKey("retailers.id"), unique=True, nullable=False)
    credits_remaining = Column(Integer, default=0, nullable=False)
    credits_used = Column(Integer, default=0, nullable=False)
    last_purchase_date = Column(DateTime, nullable=True)
