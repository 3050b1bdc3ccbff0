"""
Rate-limited lead intake for the public quote form
"""
import re
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import FlooringBrand, LeadStatus
from pricemyfloor.repositories.lead_repository import LeadRepository
from pricemyfloor.schemas.leads import LeadSubmission
from pricemyfloor.services.analytics_service import AnalyticsService
from pricemyfloor.services.pricing import parse_square_footage
from pricemyfloor.services.verification_service import METHOD_EMAIL, VerificationService
from pricemyfloor.utils.exceptions import ErrorType, FunctionError, RateLimitedError, ValidationError
from pricemyfloor.utils.helpers import utcnow
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.phone import is_plausible_phone
from pricemyfloor.utils.postal_codes import format_postal_code, validate_postal_code

logger = get_logger(__name__)

NO_PREFERENCE_BRAND = "No preference - show me options"

MAX_FIELD_LENGTH = 500
MAX_EMAIL_LENGTH = 100

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or "")) and len(email) <= MAX_EMAIL_LENGTH


def sanitize(value: Optional[str]) -> Optional[str]:
    """Trim and cap free text; empty strings become None"""
    if value is None:
        return None
    cleaned = value.strip()[:MAX_FIELD_LENGTH]
    return cleaned or None


class LeadIntakeService:
    """
    Validates, rate limits and stores quote submissions, then starts
    email verification.
    """

    def __init__(self, db: Session, verification: VerificationService):
        self.db = db
        self.leads = LeadRepository(db)
        self.analytics = AnalyticsService(db)
        self.verification = verification

    def _reject(
        self,
        event: str,
        data: Dict[str, Any],
        error: FunctionError,
        client_ip: str,
        user_agent: str,
    ) -> FunctionError:
        self.analytics.log_security_event(event, {**data, "client_ip": client_ip}, client_ip, user_agent)
        return error

    def _is_rate_limited(self, client_ip: str, email: str) -> bool:
        config = settings.rate_limit
        since = utcnow() - timedelta(minutes=config.window_minutes)

        ip_count = self.leads.count_since_by_ip(client_ip, since)
        if ip_count >= config.max_per_ip:
            logger.warning(f"[yellow]⚠️  Rate limit by IP:[/yellow] {client_ip} ({ip_count} in window)")
            return True

        email_count = self.leads.count_since_by_email(email, since)
        if email_count >= config.max_per_email:
            logger.warning(f"[yellow]⚠️  Rate limit by email:[/yellow] {email_count} in window")
            return True

        return False

    def _brand_exists(self, brand: str) -> bool:
        if brand == NO_PREFERENCE_BRAND:
            return True
        return self.db.query(FlooringBrand.id).filter(FlooringBrand.name == brand).first() is not None

    async def submit(
        self,
        submission: LeadSubmission,
        client_ip: str,
        user_agent: str,
        referrer: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Handle a quote submission.

        Checks run in a fixed order: required fields, email, phone, postal
        code, rate limit, brand. Every rejection is recorded as a security event.

        Returns:
            Response body with the new lead id

        Raises:
            ValidationError: Invalid input (400)
            RateLimitedError: Too many recent submissions (429)
            FunctionError: Unknown brand (400 INVALID_BRAND)
        """
        name = (submission.customer_name or "").strip()
        email = (submission.customer_email or "").strip()
        postal_input = (submission.postal_code or "").strip()
        brand = (submission.brand_requested or "").strip()

        if not name or not email or not postal_input or not brand:
            raise self._reject(
                "invalid_input",
                {"missing_fields": {"name": not name, "email": not email, "postal": not postal_input, "brand": not brand}},
                ValidationError("Missing required fields"),
                client_ip,
                user_agent,
            )

        if not validate_email(email):
            raise self._reject(
                "invalid_email",
                {"email": email},
                ValidationError("Invalid email format"),
                client_ip,
                user_agent,
            )

        phone = (submission.customer_phone or "").strip()
        if phone and not is_plausible_phone(phone):
            raise self._reject(
                "invalid_phone",
                {"phone_length": len(phone)},
                ValidationError("Invalid phone number format"),
                client_ip,
                user_agent,
            )

        postal_code = format_postal_code(postal_input)
        if not validate_postal_code(postal_code):
            raise self._reject(
                "invalid_postal_code",
                {"postal_code": postal_input[:20]},
                ValidationError("Invalid Canadian postal code format"),
                client_ip,
                user_agent,
            )

        if self._is_rate_limited(client_ip, email):
            raise self._reject(
                "rate_limit_exceeded",
                {"email": email},
                RateLimitedError("Too many submissions. Please wait before submitting again."),
                client_ip,
                user_agent,
            )

        if not self._brand_exists(brand):
            raise self._reject(
                "invalid_brand",
                {"brand": brand[:MAX_FIELD_LENGTH]},
                FunctionError("Invalid brand selection", ErrorType.INVALID_BRAND, 400),
                client_ip,
                user_agent,
            )

        square_footage = submission.square_footage
        if square_footage is None and submission.project_size:
            square_footage = parse_square_footage(submission.project_size)

        lead = self.leads.create(
            customer_name=sanitize(name),
            customer_email=sanitize(email).lower(),
            customer_phone=sanitize(phone),
            postal_code=postal_code.upper(),
            street_address=sanitize(submission.street_address),
            address_city=sanitize(submission.city),
            address_province=sanitize(submission.province),
            brand_requested=sanitize(brand),
            flooring_type=sanitize(submission.flooring_type),
            project_type=sanitize(submission.project_type),
            square_footage=square_footage,
            budget_range=sanitize(submission.budget_range),
            timeline=sanitize(submission.timeline),
            installation_required=bool(submission.installation_required),
            product_details=sanitize(submission.product_details),
            notes=sanitize(submission.notes),
            attachment_urls=[url.strip() for url in submission.attachment_urls if url and url.strip()],
            utm_source=sanitize(submission.utm_source),
            utm_medium=sanitize(submission.utm_medium),
            utm_campaign=sanitize(submission.utm_campaign),
            utm_term=sanitize(submission.utm_term),
            utm_content=sanitize(submission.utm_content),
            referrer=sanitize(referrer),
            client_ip=client_ip,
            user_agent=sanitize(user_agent),
            status=LeadStatus.PENDING_VERIFICATION,
            is_verified=False,
            verification_token=secrets.token_hex(32),
            verification_expires_at=utcnow() + timedelta(hours=settings.verification.intake_token_ttl_hours),
            verification_method=METHOD_EMAIL,
        )
        logger.info(f"[green]✅ Lead created:[/green] [cyan]{lead.id}[/cyan] from {client_ip}")

        try:
            await self.verification.send_verification(lead.id, METHOD_EMAIL, lead.customer_email)
        except HTTPException as e:
            logger.error(f"[red]Error sending verification email for lead {lead.id}:[/red] {e.detail}")
        except Exception as e:
            logger.error(f"[red]Unexpected error sending verification email for lead {lead.id}:[/red] {e}")

        self.analytics.log_security_event(
            "lead_submitted",
            {
                "lead_id": lead.id,
                "email_domain": lead.customer_email.split("@")[1],
                "postal_prefix": lead.postal_code[:3],
                "brand": lead.brand_requested,
                "client_ip": client_ip,
            },
            client_ip,
            user_agent,
        )

        return {
            "success": True,
            "message": "Lead submitted successfully. Please check your email to verify your request.",
            "lead_id": lead.id,
            "verification_required": True,
        }
