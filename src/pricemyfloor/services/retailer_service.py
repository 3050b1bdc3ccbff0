"""
Retailer dashboard: stats, received leads, exclusive locks and settings
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import (
    BillingRecord,
    BrandSubscription,
    DistributionStatus,
    Lead,
    LeadDistribution,
    LeadPurchase,
    Retailer,
)
from pricemyfloor.repositories.lead_repository import DistributionRepository, LeadPurchaseRepository
from pricemyfloor.schemas.retailers import RetailerSettingsUpdate
from pricemyfloor.services.distribution_service import month_start
from pricemyfloor.utils.exceptions import ConflictError, NotFoundError, ValidationError
from pricemyfloor.utils.helpers import format_datetime, money, to_decimal, utcnow
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.phone import format_phone_display

logger = get_logger(__name__)

INSTALLATION_PREFERENCES = ("yes", "no", "both")


def serialize_lead(lead: Lead, include_contact: bool = True) -> Dict[str, Any]:
    body = {
        "id": lead.id,
        "postal_code": lead.postal_code,
        "address_city": lead.address_city,
        "address_province": lead.address_province,
        "brand_requested": lead.brand_requested,
        "flooring_type": lead.flooring_type,
        "project_type": lead.project_type,
        "square_footage": lead.square_footage,
        "budget_range": lead.budget_range,
        "timeline": lead.timeline,
        "installation_required": lead.installation_required,
        "product_details": lead.product_details,
        "notes": lead.notes,
        "attachment_urls": lead.attachment_urls or [],
        "status": lead.status,
        "is_verified": lead.is_verified,
        "is_locked": lead.is_locked,
        "created_at": format_datetime(lead.created_at),
    }
    if include_contact:
        body.update({
            "customer_name": lead.customer_name,
            "customer_email": lead.customer_email,
            "customer_phone": lead.customer_phone,
            "customer_phone_display": format_phone_display(lead.customer_phone) if lead.customer_phone else None,
            "street_address": lead.street_address,
        })
    return body


def serialize_distribution(distribution: LeadDistribution, include_lead: bool = True) -> Dict[str, Any]:
    body = {
        "id": distribution.id,
        "lead_id": distribution.lead_id,
        "retailer_id": distribution.retailer_id,
        "lead_price": money(distribution.lead_price),
        "charge_amount": money(distribution.charge_amount),
        "brand_matched": distribution.brand_matched,
        "status": distribution.status,
        "was_paid": distribution.was_paid,
        "payment_method": distribution.payment_method,
        "sent_at": format_datetime(distribution.sent_at),
        "viewed_at": format_datetime(distribution.viewed_at),
        "responded_at": format_datetime(distribution.responded_at),
    }
    if include_lead and distribution.lead is not None:
        body["lead"] = serialize_lead(distribution.lead)
    return body


def serialize_retailer_settings(retailer: Retailer) -> Dict[str, Any]:
    return {
        "id": retailer.id,
        "business_name": retailer.business_name,
        "contact_name": retailer.contact_name,
        "email": retailer.email,
        "phone": retailer.phone,
        "address": retailer.address,
        "city": retailer.city,
        "province": retailer.province,
        "postal_code": retailer.postal_code,
        "website": retailer.website,
        "business_description": retailer.business_description,
        "installation_preference": retailer.installation_preference,
        "monthly_budget_cap": money(retailer.monthly_budget_cap),
        "auto_pay_enabled": retailer.auto_pay_enabled,
        "status": retailer.status,
    }


class RetailerService:
    """Read and write operations behind the retailer dashboard"""

    def __init__(self, db: Session):
        self.db = db
        self.distributions = DistributionRepository(db)
        self.purchases = LeadPurchaseRepository(db)

    def dashboard(self, retailer: Retailer) -> Dict[str, Any]:
        """
        Headline numbers for the dashboard.

        Conversion rate is the share of received leads the retailer marked
        as responded.
        """
        total_leads = self.distributions.count(retailer_id=retailer.id)
        responded = self.distributions.count(retailer_id=retailer.id, status=DistributionStatus.RESPONDED)
        active_subscriptions = (
            self.db.query(func.count(BrandSubscription.id))
            .filter(BrandSubscription.retailer_id == retailer.id, BrandSubscription.is_active.is_(True))
            .scalar()
            or 0
        )
        since = month_start()
        return {
            "total_leads": total_leads,
            "leads_this_month": self.distributions.count_since(retailer.id, since),
            "active_subscriptions": active_subscriptions,
            "monthly_spend": self.distributions.spend_since(retailer.id, since),
            "conversion_rate": round(responded / total_leads * 100, 1) if total_leads else 0.0,
            "current_balance": money(retailer.current_balance) or 0.0,
            "recent_leads": [
                serialize_distribution(distribution)
                for distribution in self.distributions.find_for_retailer(retailer.id, limit=5)
            ],
        }

    def list_leads(self, retailer: Retailer, status: Optional[str] = None, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        return [
            serialize_distribution(distribution)
            for distribution in self.distributions.find_for_retailer(retailer.id, status=status, skip=skip, limit=limit)
        ]

    def _get_distribution(self, retailer: Retailer, lead_id: str) -> LeadDistribution:
        distribution = self.distributions.find_for_lead_and_retailer(lead_id, retailer.id)
        if not distribution:
            raise NotFoundError("Lead not found")
        return distribution

    def get_lead(self, retailer: Retailer, lead_id: str) -> Dict[str, Any]:
        """Lead detail; the first read marks the distribution viewed"""
        distribution = self._get_distribution(retailer, lead_id)
        if distribution.viewed_at is None:
            distribution.viewed_at = utcnow()
            if distribution.status == DistributionStatus.SENT:
                distribution.status = DistributionStatus.VIEWED
            self.db.commit()
        return serialize_distribution(distribution)

    def mark_responded(self, retailer: Retailer, lead_id: str) -> Dict[str, Any]:
        distribution = self._get_distribution(retailer, lead_id)
        now = utcnow()
        distribution.responded_at = now
        distribution.viewed_at = distribution.viewed_at or now
        distribution.status = DistributionStatus.RESPONDED
        self.db.commit()
        return serialize_distribution(distribution)

    def lock_lead(self, retailer: Retailer, lead_id: str) -> Dict[str, Any]:
        """
        Buy exclusive access to a lead already sent to this retailer.

        The price is the distribution's lead price times
        `distribution.exclusive_lock_multiplier`. It is invoiced: added to the
        retailer's balance with a pending billing record.

        Raises:
            NotFoundError: The lead was not sent to this retailer
            ConflictError: The lead is already locked
        """
        distribution = self._get_distribution(retailer, lead_id)
        lead = distribution.lead
        if lead.is_locked or self.purchases.find_one_by(lead_id=lead.id):
            raise ConflictError("Lead is already locked")

        price = to_decimal(to_decimal(distribution.lead_price) * to_decimal(settings.distribution.exclusive_lock_multiplier))
        lead.is_locked = True
        lead.lock_price = price
        lead.assigned_retailer_id = retailer.id
        self.db.add(LeadPurchase(
            lead_id=lead.id,
            retailer_id=retailer.id,
            purchase_price=price,
            currency=settings.billing.currency.upper(),
            purchase_method="invoice",
        ))
        self.db.add(BillingRecord(
            retailer_id=retailer.id,
            lead_distribution_id=distribution.id,
            amount=price,
            billing_type="exclusive_lock",
            status="pending",
        ))
        retailer.current_balance = to_decimal(retailer.current_balance) + price
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Lead is already locked")

        logger.info(f"[green]🔒 Lead {lead.id} locked[/green] by retailer {retailer.id} for {price}")
        return {"success": True, "lead_id": lead.id, "lock_price": money(price)}

    def get_settings(self, retailer: Retailer) -> Dict[str, Any]:
        return serialize_retailer_settings(retailer)

    def update_settings(self, retailer: Retailer, update: RetailerSettingsUpdate) -> Dict[str, Any]:
        changes = update.model_dump(exclude_unset=True)
        preference = changes.get("installation_preference")
        if preference is not None and preference not in INSTALLATION_PREFERENCES:
            raise ValidationError("installation_preference must be one of: yes, no, both")
        cap = changes.get("monthly_budget_cap")
        if cap is not None:
            if to_decimal(cap) < 0:
                raise ValidationError("monthly_budget_cap cannot be negative")
            changes["monthly_budget_cap"] = to_decimal(cap)

        for key, value in changes.items():
            setattr(retailer, key, value)
        self.db.commit()
        logger.info(f"[green]✅ Settings updated[/green] for retailer {retailer.id}: {', '.join(changes) or 'nothing'}")
        return serialize_retailer_settings(retailer)
