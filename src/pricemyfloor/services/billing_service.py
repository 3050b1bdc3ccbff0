"""
Billing: lead charges, Stripe customers and cards, credit packages and webhooks
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import (
    BillingRecord,
    DistributionStatus,
    LeadDistribution,
    PaymentMethod,
    PaymentTransaction,
    PaymentType,
    Retailer,
    RetailerLeadCredits,
    TransactionStatus,
)
from pricemyfloor.external.payments.stripe_client import StripeClient
from pricemyfloor.repositories.billing_repository import (
    BillingRecordRepository,
    CreditRepository,
    PaymentMethodRepository,
    TransactionRepository,
)
from pricemyfloor.repositories.lead_repository import DistributionRepository
from pricemyfloor.services.pricing import CREDIT_PACKAGES
from pricemyfloor.utils.exceptions import (
    ConflictError,
    ExternalServiceError,
    FunctionError,
    ErrorType,
    NotFoundError,
    PaymentError,
    ValidationError,
)
from pricemyfloor.utils.helpers import format_datetime, money, to_cents, to_decimal, utcnow
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_payment_method(method: PaymentMethod) -> Dict[str, Any]:
    return {
        "id": method.id,
        "stripe_payment_method_id": method.stripe_payment_method_id,
        "card_brand": method.card_brand,
        "card_last4": method.card_last4,
        "card_exp_month": method.card_exp_month,
        "card_exp_year": method.card_exp_year,
        "is_default": method.is_default,
        "created_at": format_datetime(method.created_at),
    }


class BillingService:
    """Charges retailers for leads and manages their Stripe billing state"""

    def __init__(self, db: Session, stripe_client: StripeClient):
        self.db = db
        self.stripe = stripe_client
        self.distributions = DistributionRepository(db)
        self.payment_methods = PaymentMethodRepository(db)
        self.transactions = TransactionRepository(db)
        self.billing_records = BillingRecordRepository(db)
        self.credits = CreditRepository(db)

    # ------------------------------------------------------------------
    # Lead charges
    # ------------------------------------------------------------------

    def _record_billing(self, distribution: LeadDistribution, amount, billing_type: str, status: str) -> None:
        self.db.add(BillingRecord(
            retailer_id=distribution.retailer_id,
            lead_distribution_id=distribution.id,
            amount=amount,
            billing_type=billing_type,
            status=status,
        ))

    def _settle_outstanding(self, distribution: LeadDistribution, billing_type: str) -> bool:
        """
        Take a lead charge previously carried on the balance back off it.

        Returns:
            True when an outstanding charge existed and is now marked paid
        """
        outstanding = self.billing_records.find_outstanding_charge(distribution.id)
        if outstanding is None:
            return False
        retailer: Retailer = distribution.retailer
        remaining = to_decimal(retailer.current_balance) - to_decimal(outstanding.amount)
        retailer.current_balance = max(remaining, to_decimal(0))
        outstanding.billing_type = billing_type
        outstanding.status = "paid"
        logger.info(f"[green]Outstanding balance of {outstanding.amount} settled[/green] for distribution {distribution.id}")
        return True

    def _use_credit(self, distribution: LeadDistribution, credits: RetailerLeadCredits, amount) -> Dict[str, Any]:
        credits.credits_remaining -= 1
        credits.credits_used += 1
        self.db.add(PaymentTransaction(
            retailer_id=distribution.retailer_id,
            lead_id=distribution.lead_id,
            amount_cents=to_cents(amount),
            currency=settings.billing.currency,
            payment_type=PaymentType.CREDIT_DEDUCTION,
            status=TransactionStatus.COMPLETED,
            description=f"Lead credit used for lead {distribution.lead_id[:8]}",
        ))
        distribution.was_paid = True
        distribution.payment_method = "credits"
        distribution.charge_amount = amount
        distribution.status = DistributionStatus.SENT
        if not self._settle_outstanding(distribution, "lead_credit"):
            self._record_billing(distribution, amount, "lead_credit", "paid")
        self.db.commit()
        logger.info(f"[green]✅ Lead credit used[/green] for distribution {distribution.id} ({credits.credits_remaining} left)")
        return {"success": True, "was_paid": True, "payment_method": "credits", "stripe_payment_intent_id": None}

    async def charge_distribution(self, distribution_id: Optional[str], amount=None) -> Dict[str, Any]:
        """
        Pay for a lead distribution.

        A prepaid lead credit is used first. Without credits the retailer's
        default card is charged off-session. Without a card the distribution
        is left as payment_pending and the amount is added to the balance once;
        a later credit or card payment takes it back off.

        Args:
            distribution_id: Distribution to pay for
            amount: Dollar amount; defaults to the distribution's lead price

        Raises:
            NotFoundError: Unknown distribution
            PaymentError: Stripe customer missing or the card was declined
        """
        if not distribution_id:
            raise ValidationError("distribution_id is required")
        distribution = self.distributions.find_by_id(distribution_id)
        if not distribution:
            raise NotFoundError("Lead distribution not found")
        if distribution.was_paid:
            return {"success": True, "was_paid": True, "payment_method": distribution.payment_method, "already_paid": True}

        amount = to_decimal(amount if amount is not None else distribution.lead_price)
        if amount <= 0:
            raise ValidationError("Charge amount must be positive")

        credits = self.credits.for_retailer(distribution.retailer_id)
        if credits and credits.credits_remaining > 0:
            return self._use_credit(distribution, credits, amount)

        retailer: Retailer = distribution.retailer
        default_method = self.payment_methods.find_default(retailer.id)
        if default_method is None:
            distribution.was_paid = False
            distribution.payment_method = "none"
            distribution.charge_amount = amount
            distribution.status = DistributionStatus.PAYMENT_PENDING
            if self.billing_records.find_outstanding_charge(distribution.id) is None:
                retailer.current_balance = to_decimal(retailer.current_balance) + amount
                self._record_billing(distribution, amount, "lead_charge", "pending")
            self.db.commit()
            logger.warning(f"[yellow]⚠️  No payment method for retailer[/yellow] {retailer.id}; distribution left pending")
            return {"success": False, "message": "No payment method available", "was_paid": False}

        if not retailer.stripe_customer_id:
            raise PaymentError("Retailer Stripe customer not found", status_code=400)

        amount_cents = to_cents(amount)
        try:
            intent = await self.stripe.charge_off_session(
                amount_cents=amount_cents,
                customer_id=retailer.stripe_customer_id,
                payment_method_id=default_method.stripe_payment_method_id,
                description=f"Lead payment for {retailer.business_name}",
                metadata={
                    "retailer_id": retailer.id,
                    "lead_id": distribution.lead_id,
                    "distribution_id": distribution.id,
                },
            )
        except ExternalServiceError as e:
            distribution.was_paid = False
            distribution.payment_method = "card"
            distribution.charge_amount = amount
            distribution.status = DistributionStatus.PAYMENT_FAILED
            self.db.add(PaymentTransaction(
                retailer_id=retailer.id,
                lead_id=distribution.lead_id,
                amount_cents=amount_cents,
                currency=settings.billing.currency,
                payment_type=PaymentType.LEAD_PAYMENT,
                status=TransactionStatus.FAILED,
                description=f"Lead payment for lead {distribution.lead_id[:8]} failed: {e.message}"[:500],
            ))
            self._record_billing(distribution, amount, "lead_charge", "failed")
            self.db.commit()
            raise PaymentError(f"Card payment failed: {e.message}")

        was_paid = intent["status"] == "succeeded"
        self.db.add(PaymentTransaction(
            retailer_id=retailer.id,
            lead_id=distribution.lead_id,
            amount_cents=amount_cents,
            currency=settings.billing.currency,
            payment_type=PaymentType.LEAD_PAYMENT,
            status=TransactionStatus.COMPLETED if was_paid else TransactionStatus.PENDING,
            stripe_payment_intent_id=intent["id"],
            description=f"Lead payment for lead {distribution.lead_id[:8]}",
        ))
        distribution.was_paid = was_paid
        distribution.payment_method = "card"
        distribution.stripe_payment_intent_id = intent["id"]
        distribution.charge_amount = amount
        distribution.status = DistributionStatus.SENT if was_paid else DistributionStatus.PAYMENT_FAILED
        if not was_paid:
            self._record_billing(distribution, amount, "lead_charge", "processing")
        elif not self._settle_outstanding(distribution, "lead_charge"):
            self._record_billing(distribution, amount, "lead_charge", "paid")
        self.db.commit()

        return {
            "success": True,
            "was_paid": was_paid,
            "payment_method": "card",
            "stripe_payment_intent_id": intent["id"],
        }

    # ------------------------------------------------------------------
    # Customers and cards
    # ------------------------------------------------------------------

    async def ensure_customer(self, retailer: Retailer) -> str:
        if retailer.stripe_customer_id:
            return retailer.stripe_customer_id
        customer = await self.stripe.create_customer(
            email=retailer.email,
            name=retailer.business_name,
            metadata={"retailer_id": retailer.id, "business_name": retailer.business_name},
        )
        retailer.stripe_customer_id = customer["id"]
        self.db.commit()
        return customer["id"]

    async def create_setup_intent(self, retailer: Retailer) -> Dict[str, Any]:
        try:
            customer_id = await self.ensure_customer(retailer)
            intent = await self.stripe.create_setup_intent(customer_id, metadata={"retailer_id": retailer.id})
        except ExternalServiceError as e:
            raise PaymentError(e.message, status_code=400)
        return {"clientSecret": intent["client_secret"], "customerId": customer_id}

    async def save_payment_method(self, retailer: Retailer, payment_method_id: Optional[str]) -> PaymentMethod:
        """Store a card confirmed through a SetupIntent; the first card becomes the default"""
        if not payment_method_id:
            raise ValidationError("payment_method_id is required")
        if self.payment_methods.find_one_by(stripe_payment_method_id=payment_method_id):
            raise ConflictError("Payment method already saved")

        try:
            card = await self.stripe.retrieve_payment_method(payment_method_id)
        except ExternalServiceError as e:
            raise PaymentError(e.message, status_code=400)

        is_first = self.payment_methods.count(retailer_id=retailer.id) == 0
        method = self.payment_methods.create(
            retailer_id=retailer.id,
            stripe_payment_method_id=payment_method_id,
            card_brand=card.get("brand") or "unknown",
            card_last4=card.get("last4") or "0000",
            card_exp_month=card.get("exp_month"),
            card_exp_year=card.get("exp_year"),
            is_default=is_first,
        )
        logger.info(f"[green]✅ Payment method saved[/green] for retailer {retailer.id} (default={is_first})")
        return method

    def list_payment_methods(self, retailer: Retailer) -> List[PaymentMethod]:
        return self.payment_methods.find_for_retailer(retailer.id)

    def _get_method(self, retailer: Retailer, method_id: str) -> PaymentMethod:
        method = self.payment_methods.find_by_id(method_id)
        if not method or method.retailer_id != retailer.id:
            raise NotFoundError("Payment method not found")
        return method

    def set_default_payment_method(self, retailer: Retailer, method_id: str) -> PaymentMethod:
        method = self._get_method(retailer, method_id)
        for other in self.payment_methods.find_for_retailer(retailer.id):
            other.is_default = other.id == method.id
        self.db.commit()
        return method

    async def delete_payment_method(self, retailer: Retailer, method_id: str) -> None:
        method = self._get_method(retailer, method_id)
        try:
            await self.stripe.detach_payment_method(method.stripe_payment_method_id)
        except ExternalServiceError as e:
            logger.warning(f"[yellow]⚠️  Could not detach card from Stripe:[/yellow] {e.message}")

        was_default = method.is_default
        self.db.delete(method)
        self.db.flush()
        if was_default:
            remaining = self.payment_methods.find_for_retailer(retailer.id)
            if remaining:
                remaining[0].is_default = True
        self.db.commit()

    # ------------------------------------------------------------------
    # Credits
    # ------------------------------------------------------------------

    async def purchase_credits(self, retailer: Retailer, user_id: str, package_type: Optional[str], origin: Optional[str]) -> Dict[str, Any]:
        package = CREDIT_PACKAGES.get(package_type or "")
        if package is None:
            raise ValidationError("Invalid package type")

        base_url = (origin or settings.public_site_url).rstrip("/")
        try:
            customer_id = await self.ensure_customer(retailer)
            session = await self.stripe.create_checkout_session(
                customer_id=customer_id,
                product_name=package.name,
                description=f"{package.credits} lead credits for {retailer.business_name}",
                amount_cents=package.price * 100,
                success_url=f"{base_url}/retailer/credits?success=true&credits={package.credits}",
                cancel_url=f"{base_url}/retailer/credits?cancelled=true",
                metadata={
                    "retailer_id": retailer.id,
                    "package_type": package.key,
                    "credits": str(package.credits),
                    "user_id": user_id,
                },
            )
        except ExternalServiceError as e:
            raise PaymentError(e.message, status_code=400)

        return {"url": session["url"], "package": package.model_dump()}

    def add_credits(self, retailer_id: str, credits: int) -> RetailerLeadCredits:
        record = self.credits.for_retailer(retailer_id)
        if record is None:
            record = RetailerLeadCredits(retailer_id=retailer_id, credits_remaining=0, credits_used=0)
            self.db.add(record)
        record.credits_remaining = (record.credits_remaining or 0) + credits
        record.last_purchase_date = utcnow()
        return record

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def _on_checkout_completed(self, session: Dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        retailer_id = metadata.get("retailer_id")
        credits = metadata.get("credits")
        if not retailer_id or not credits:
            logger.info("[dim]Checkout session without credit metadata ignored[/dim]")
            return

        reference = session.get("payment_intent") or session.get("id")
        if reference and self.transactions.find_one_by(
            stripe_payment_intent_id=reference, payment_type=PaymentType.CREDIT_PURCHASE
        ):
            logger.info(f"[dim]Checkout {reference} already credited[/dim]")
            return

        count = int(credits)
        self.add_credits(retailer_id, count)
        self.db.add(PaymentTransaction(
            retailer_id=retailer_id,
            amount_cents=session.get("amount_total") or 0,
            currency=session.get("currency") or settings.billing.currency,
            payment_type=PaymentType.CREDIT_PURCHASE,
            status=TransactionStatus.COMPLETED,
            stripe_payment_intent_id=reference,
            description=f"Purchase of {count} lead credits ({metadata.get('package_type')})",
        ))
        self.db.commit()
        logger.info(f"[green]✅ {count} lead credits added[/green] for retailer {retailer_id}")

    def _on_payment_intent(self, intent: Dict[str, Any], succeeded: bool) -> None:
        transactions = self.transactions.find_by_payment_intent(intent.get("id"))
        for transaction in transactions:
            if succeeded:
                transaction.status = TransactionStatus.COMPLETED
                transaction.net_amount_cents = intent.get("amount_received")
            else:
                transaction.status = TransactionStatus.FAILED

        for distribution in self.distributions.find_by(stripe_payment_intent_id=intent.get("id")):
            distribution.was_paid = succeeded
            distribution.status = DistributionStatus.SENT if succeeded else DistributionStatus.PAYMENT_FAILED
            processing = self.billing_records.find_by(lead_distribution_id=distribution.id, status="processing")
            if succeeded and self._settle_outstanding(distribution, "lead_charge"):
                # the settled balance line already records this payment
                for record in processing:
                    self.db.delete(record)
                continue
            for record in processing:
                record.status = "paid" if succeeded else "failed"
        self.db.commit()

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and apply a Stripe webhook event.

        Raises:
            FunctionError: 400 when the signature does not verify
        """
        try:
            event = self.stripe.construct_event(payload, signature)
        except ExternalServiceError as e:
            logger.warning(f"[yellow]⚠️  Rejected Stripe webhook:[/yellow] {e.message}")
            raise FunctionError(e.message, ErrorType.VALIDATION_ERROR, e.status_code or 400)

        event_type = event.get("type")
        data = (event.get("data") or {}).get("object") or {}
        logger.info(f"[cyan]💳 Stripe webhook:[/cyan] {event_type}")

        if event_type == "checkout.session.completed":
            self._on_checkout_completed(data)
        elif event_type == "payment_intent.succeeded":
            self._on_payment_intent(data, succeeded=True)
        elif event_type == "payment_intent.payment_failed":
            self._on_payment_intent(data, succeeded=False)
        else:
            logger.debug(f"[dim]Unhandled Stripe event type {event_type}[/dim]")

        return {"received": True}

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def billing_summary(self, retailer: Retailer) -> Dict[str, Any]:
        since = utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        credits = self.credits.for_retailer(retailer.id)
        return {
            "current_balance": money(retailer.current_balance) or 0.0,
            "monthly_spend": self.distributions.spend_since(retailer.id, since),
            "leads_this_month": self.distributions.count_since(retailer.id, since),
            "monthly_budget_cap": money(retailer.monthly_budget_cap),
            "next_billing_date": retailer.next_billing_date.isoformat() if retailer.next_billing_date else None,
            "auto_pay_enabled": retailer.auto_pay_enabled,
            "credits_remaining": credits.credits_remaining if credits else 0,
            "credits_used": credits.credits_used if credits else 0,
            "recent_records": [
                {
                    "id": record.id,
                    "amount": money(record.amount),
                    "billing_type": record.billing_type,
                    "status": record.status,
                    "lead_distribution_id": record.lead_distribution_id,
                    "created_at": format_datetime(record.created_at),
                }
                for record in self.billing_records.recent_for_retailer(retailer.id)
            ],
        }
