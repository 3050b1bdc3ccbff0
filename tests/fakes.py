"""
In-memory stand-ins for the Resend, Twilio and Stripe clients
"""
import asyncio
import re
from typing import Any, Dict, List, Optional

from pricemyfloor.external.payments.stripe_client import StripeClient
from pricemyfloor.utils.exceptions import ExternalServiceError


class FakeEmailClient:
    def __init__(self, error: Optional[str] = None, delay: float = 0):
        self.sent: List[Dict[str, Any]] = []
        self.error = error
        self.delay = delay

    async def send_email(self, to, subject: str, html: str, reply_to: Optional[str] = None) -> Dict[str, Any]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise ExternalServiceError("Resend", self.error)
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": f"email_{len(self.sent)}"}

    def last_code(self) -> str:
        return re.search(r"<h1[^>]*>(\d{6})</h1>", self.sent[-1]["html"]).group(1)

    def last_temp_password(self) -> str:
        match = re.search(r"<code[^>]*>([^<]+)</code>", self.sent[-1]["html"])
        return match.group(1)


class FakeSmsClient:
    def __init__(self, error: Optional[str] = None, approved_code: str = "123456"):
        self.started: List[str] = []
        self.error = error
        self.approved_code = approved_code

    async def start_verification(self, phone: str) -> Dict[str, Any]:
        if self.error:
            raise ExternalServiceError("Twilio", self.error)
        self.started.append(phone)
        return {"sid": "VE123", "status": "pending"}

    async def check_verification(self, phone: str, code: str) -> bool:
        return phone in self.started and code == self.approved_code


class FakeStripeClient(StripeClient):
    """Network calls are faked; webhook signature checks use the real SDK"""

    def __init__(self, charge_status: str = "succeeded", decline: Optional[str] = None):
        super().__init__()
        self.charge_status = charge_status
        self.decline = decline
        self.charges: List[Dict[str, Any]] = []
        self.checkout_sessions: List[Dict[str, Any]] = []
        self.detached: List[str] = []

    async def create_customer(self, email, name, metadata):
        return {"id": "cus_test"}

    async def create_setup_intent(self, customer_id, metadata):
        return {"id": "seti_test", "client_secret": "seti_test_secret"}

    async def retrieve_payment_method(self, payment_method_id):
        return {"id": payment_method_id, "brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030}

    async def detach_payment_method(self, payment_method_id):
        self.detached.append(payment_method_id)

    async def charge_off_session(self, amount_cents, customer_id, payment_method_id, description, metadata):
        if self.decline:
            raise ExternalServiceError("Stripe", self.decline, status_code=402, code="card_declined")
        self.charges.append({"amount_cents": amount_cents, "customer": customer_id, "payment_method": payment_method_id})
        return {"id": f"pi_test_{len(self.charges)}", "status": self.charge_status}

    async def create_checkout_session(self, customer_id, product_name, description, amount_cents, success_url, cancel_url, metadata):
        self.checkout_sessions.append({"amount_cents": amount_cents, "metadata": metadata, "success_url": success_url})
        return {"id": "cs_test", "url": "https://checkout.stripe.com/c/cs_test"}
