"""
Stripe client for customers, cards, charges, checkout and webhooks
"""
import asyncio
import json
from typing import Dict, Any, Optional, Callable

import stripe

from pricemyfloor.core.config import settings
from pricemyfloor.utils.exceptions import ExternalServiceError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "Stripe"


class StripeClient:
    """
    Thin async facade over the Stripe SDK.
    SDK calls are blocking, so each one runs in a worker thread.
    Every method returns plain dicts with the fields the billing service reads.
    """

    def __init__(self):
        self.secret_key = settings.stripe.secret_key
        self.webhook_secret = settings.stripe.webhook_secret
        self.webhook_tolerance = settings.stripe.webhook_tolerance
        self.currency = settings.billing.currency

    async def _call(self, action: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        if not self.secret_key:
            raise ExternalServiceError(SERVICE_NAME, "Payment service not configured - missing Stripe secret key")
        try:
            return await asyncio.to_thread(func, *args, api_key=self.secret_key, **kwargs)
        except stripe.CardError as e:
            logger.warning(f"[yellow]⚠️  Stripe card declined during {action}:[/yellow] {e.user_message}")
            raise ExternalServiceError(SERVICE_NAME, e.user_message or str(e), status_code=e.http_status, code=e.code)
        except stripe.StripeError as e:
            logger.error(f"[red]❌ Stripe error during {action}:[/red] [yellow]{e.http_status}[/yellow] - {e.user_message or e}")
            raise ExternalServiceError(SERVICE_NAME, str(e.user_message or e), status_code=e.http_status, code=e.code)

    async def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        customer = await self._call("create customer", stripe.Customer.create, email=email, name=name, metadata=metadata)
        logger.info(f"[green]✅ Stripe customer created:[/green] [cyan]{customer.id}[/cyan]")
        return {"id": customer.id}

    async def create_setup_intent(self, customer_id: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        intent = await self._call(
            "create setup intent",
            stripe.SetupIntent.create,
            customer=customer_id,
            payment_method_types=["card"],
            metadata=metadata,
        )
        return {"id": intent.id, "client_secret": intent.client_secret}

    async def retrieve_payment_method(self, payment_method_id: str) -> Dict[str, Any]:
        method = await self._call("retrieve payment method", stripe.PaymentMethod.retrieve, payment_method_id)
        card = method.card
        return {
            "id": method.id,
            "brand": card.brand if card else "unknown",
            "last4": card.last4 if card else "0000",
            "exp_month": card.exp_month if card else None,
            "exp_year": card.exp_year if card else None,
        }

    async def detach_payment_method(self, payment_method_id: str) -> None:
        await self._call("detach payment method", stripe.PaymentMethod.detach, payment_method_id)

    async def charge_off_session(
        self,
        amount_cents: int,
        customer_id: str,
        payment_method_id: str,
        description: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Any]:
        """
        Confirm a PaymentIntent against a saved card without the customer present.

        Returns:
            Dict with the PaymentIntent id and status
        """
        intent = await self._call(
            "charge card",
            stripe.PaymentIntent.create,
            amount=amount_cents,
            currency=self.currency,
            customer=customer_id,
            payment_method=payment_method_id,
            off_session=True,
            confirm=True,
            description=description,
            metadata=metadata,
        )
        logger.info(f"[green]✅ PaymentIntent[/green] [cyan]{intent.id}[/cyan] status={intent.status}")
        return {"id": intent.id, "status": intent.status}

    async def create_checkout_session(
        self,
        customer_id: str,
        product_name: str,
        description: str,
        amount_cents: int,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Any]:
        session = await self._call(
            "create checkout session",
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": product_name, "description": description},
                    "unit_amount": amount_cents,
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        return {"id": session.id, "url": session.url}

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook signature and decode the event.

        Raises:
            ExternalServiceError: If the secret is missing or the signature does not verify
        """
        if not self.webhook_secret:
            raise ExternalServiceError(SERVICE_NAME, "Webhook secret not configured")
        if not signature:
            raise ExternalServiceError(SERVICE_NAME, "No Stripe signature found", status_code=400)
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret, tolerance=self.webhook_tolerance)
        except stripe.SignatureVerificationError as e:
            raise ExternalServiceError(SERVICE_NAME, f"Webhook Error: {e}", status_code=400)
        except ValueError as e:
            raise ExternalServiceError(SERVICE_NAME, f"Webhook Error: invalid payload ({e})", status_code=400)
        return json.loads(payload)
