"""
Lead distribution to matching retailers
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import (
    BrandSubscription,
    DistributionStatus,
    Lead,
    LeadDistribution,
    LeadStatus,
    Retailer,
)
from pricemyfloor.external.messaging.resend_client import ResendClient
from pricemyfloor.repositories.lead_repository import DistributionRepository, LeadRepository
from pricemyfloor.repositories.retailer_repository import RetailerRepository, SubscriptionRepository
from pricemyfloor.services.billing_service import BillingService
from pricemyfloor.services.email_templates import new_lead_email
from pricemyfloor.services.lead_intake_service import NO_PREFERENCE_BRAND
from pricemyfloor.services.pricing import DEFAULT_SQUARE_FOOTAGE, INSTALLATION_ADDON, calculate_lead_price
from pricemyfloor.utils.exceptions import ErrorType, ExternalServiceError, NotFoundError, ValidationError
from pricemyfloor.utils.helpers import money, to_decimal, utcnow
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.phone import format_phone_display
from pricemyfloor.utils.postal_codes import postal_code_matches

logger = get_logger(__name__)


def installation_compatible(preference: Optional[str], installation_required: bool) -> bool:
    """Retailers preferring "yes" only take install jobs, "no" only supply-only jobs"""
    if preference == "yes":
        return installation_required
    if preference == "no":
        return not installation_required
    return True


def subscription_covers(subscription: BrandSubscription, square_footage: int) -> bool:
    if square_footage < (subscription.sqft_tier_min or 0):
        return False
    return subscription.sqft_tier_max is None or square_footage <= subscription.sqft_tier_max


def month_start():
    return utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class DistributionService:
    """Matches verified leads to approved retailers and records deliveries"""

    def __init__(
        self,
        db: Session,
        billing: Optional[BillingService] = None,
        email_client: Optional[ResendClient] = None,
    ):
        self.db = db
        self.email_client = email_client
        self.leads = LeadRepository(db)
        self.distributions = DistributionRepository(db)
        self.retailers = RetailerRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.billing = billing

    def lead_price_for(self, lead: Lead, subscription: BrandSubscription) -> Decimal:
        """Subscription price when set, otherwise the tier price for the lead's size"""
        if subscription.lead_price is not None and to_decimal(subscription.lead_price) > 0:
            return to_decimal(subscription.lead_price)
        price = calculate_lead_price(lead.square_footage or DEFAULT_SQUARE_FOOTAGE)
        if lead.installation_required and subscription.accepts_installation:
            price += INSTALLATION_ADDON
        return to_decimal(price)

    def _pick_subscription(self, lead: Lead, candidates: List[BrandSubscription]) -> Optional[BrandSubscription]:
        square_footage = lead.square_footage or DEFAULT_SQUARE_FOOTAGE
        covering = [sub for sub in candidates if subscription_covers(sub, square_footage)]
        if not covering:
            return None
        if lead.installation_required:
            # Prefer a tier that takes installation jobs
            covering.sort(key=lambda sub: not sub.accepts_installation)
        return covering[0]

    def _within_budget(self, retailer: Retailer, price: Decimal) -> bool:
        if retailer.monthly_budget_cap is None:
            return True
        spent = to_decimal(self.distributions.spend_since(retailer.id, month_start()))
        return spent + price <= to_decimal(retailer.monthly_budget_cap)

    def find_matches(self, lead: Lead) -> List[Tuple[Retailer, BrandSubscription, Decimal]]:
        """
        Approved retailers eligible for a lead, in signup order.

        A retailer matches when it has an active subscription for the brand
        (any brand for the no-preference sentinel) whose tier covers the
        lead's size, its coverage prefixes match the postal code, its
        installation preference fits and the price stays within its
        monthly budget cap.
        """
        any_brand = not lead.brand_requested or lead.brand_requested == NO_PREFERENCE_BRAND
        active = self.subscriptions.find_active(None if any_brand else lead.brand_requested)

        by_retailer: Dict[str, List[BrandSubscription]] = {}
        for subscription in active:
            by_retailer.setdefault(subscription.retailer_id, []).append(subscription)

        matches = []
        for retailer in self.retailers.find_approved():
            candidates = by_retailer.get(retailer.id)
            if not candidates:
                continue
            if not postal_code_matches(lead.postal_code, retailer.postal_code_prefixes):
                continue
            if not installation_compatible(retailer.installation_preference, bool(lead.installation_required)):
                continue
            subscription = self._pick_subscription(lead, candidates)
            if subscription is None:
                continue
            price = self.lead_price_for(lead, subscription)
            if not self._within_budget(retailer, price):
                logger.info(f"[dim]Retailer {retailer.id} skipped: monthly budget cap reached[/dim]")
                continue
            matches.append((retailer, subscription, price))
        return matches

    async def _notify_retailer(self, lead: Lead, retailer: Retailer, distribution: LeadDistribution) -> bool:
        """Email the lead details to the retailer; failures are logged, never raised"""
        if distribution.payment_method == "credits":
            payment_text = "Paid via lead credits"
        elif distribution.was_paid:
            payment_text = f"Charged ${to_decimal(distribution.charge_amount)} {settings.billing.currency.upper()}"
        else:
            payment_text = f"Lead price ${to_decimal(distribution.lead_price)} {settings.billing.currency.upper()}, billed to your account"

        subject, html = new_lead_email(
            business_name=retailer.business_name,
            customer_name=lead.customer_name,
            customer_email=lead.customer_email,
            customer_phone=format_phone_display(lead.customer_phone) if lead.customer_phone else "",
            postal_code=lead.postal_code,
            brand=distribution.brand_matched,
            square_footage=lead.square_footage,
            installation_required=bool(lead.installation_required),
            timeline=lead.timeline,
            notes=lead.notes,
            payment_text=payment_text,
            leads_url=f"{settings.public_site_url.rstrip('/')}/retailer/leads",
        )
        try:
            await self.email_client.send_email(retailer.email, subject, html)
            return True
        except ExternalServiceError as e:
            logger.error(f"[red]❌ Lead email failed for retailer {retailer.id}:[/red] {e.message}")
            return False

    async def distribute(self, lead_id: Optional[str]) -> Dict[str, Any]:
        """
        Send a verified lead to up to `distribution.max_retailers` retailers
        and email each new recipient the lead details.

        Returns:
            Summary of the distributions created

        Raises:
            ValidationError: Missing id or the lead is not verified
            NotFoundError: Unknown lead
        """
        if not lead_id:
            raise ValidationError("leadId is required")
        lead = self.leads.find_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead not found", ErrorType.LEAD_NOT_FOUND)
        if not lead.is_verified:
            raise ValidationError("Lead must be verified before distribution")

        matches = self.find_matches(lead)
        selected = matches[: settings.distribution.max_retailers]

        created: List[LeadDistribution] = []
        recipients: List[Retailer] = []
        notified = []
        for retailer, subscription, price in selected:
            if self.distributions.find_for_lead_and_retailer(lead.id, retailer.id):
                continue
            distribution = LeadDistribution(
                lead_id=lead.id,
                retailer_id=retailer.id,
                lead_price=price,
                charge_amount=price,
                brand_matched=subscription.brand_name,
                status=DistributionStatus.SENT,
                was_paid=False,
                payment_method="pending",
                distribution_method="automatic",
                sent_at=utcnow(),
            )
            self.db.add(distribution)
            created.append(distribution)
            recipients.append(retailer)
            notified.append({
                "retailer_id": retailer.id,
                "business_name": retailer.business_name,
                "brand_matched": subscription.brand_name,
                "lead_price": money(price),
            })

        if created:
            lead.status = LeadStatus.DISTRIBUTED
        self.db.commit()

        logger.info(
            f"[green]✅ Lead {lead.id} distributed:[/green] "
            f"[cyan]{len(created)}[/cyan] new, [cyan]{len(matches)}[/cyan] matching"
        )

        if created and self.billing is not None and settings.billing.auto_charge:
            for distribution in created:
                try:
                    await self.billing.charge_distribution(distribution.id)
                except Exception as e:
                    logger.error(f"[red]Auto-charge failed for distribution {distribution.id}:[/red] {e}")

        emails_sent = 0
        if self.email_client is not None:
            for distribution, retailer in zip(created, recipients):
                if await self._notify_retailer(lead, retailer, distribution):
                    emails_sent += 1

        return {
            "success": True,
            "lead_id": lead.id,
            "distributions_created": len(created),
            "retailers_notified": notified,
            "emails_sent": emails_sent,
            "total_matching_retailers": len(matches),
        }
