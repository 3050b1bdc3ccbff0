"""
Contact verification for leads: one-time codes by email (Resend) or SMS (Twilio Verify)
"""
import hmac
import re
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import Lead, LeadStatus
from pricemyfloor.external.messaging.resend_client import ResendClient
from pricemyfloor.external.messaging.twilio_verify import TwilioVerifyClient
from pricemyfloor.repositories.lead_repository import LeadRepository
from pricemyfloor.services.email_templates import verification_code_email
from pricemyfloor.utils.exceptions import (
    ErrorType,
    ExternalServiceError,
    ExternalServiceTimeout,
    FunctionError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from pricemyfloor.utils.helpers import format_datetime, random_digits, utcnow
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.phone import normalize_phone
from pricemyfloor.utils.timeouts import with_timeout
from pricemyfloor.utils.verification_errors import describe_failure

logger = get_logger(__name__)

METHOD_EMAIL = "email"
METHOD_SMS = "sms"
METHODS = (METHOD_EMAIL, METHOD_SMS)

TEMP_CUSTOMER_NAME = "TEMP_VERIFICATION"
TEMP_POSTAL_CODE = "TEMP"

_SIX_DIGITS = re.compile(r"^\d{6}$")


class VerificationService:
    """Sends and checks lead verification codes"""

    def __init__(self, db: Session, email_client: ResendClient, sms_client: TwilioVerifyClient):
        self.db = db
        self.leads = LeadRepository(db)
        self.email_client = email_client
        self.sms_client = sms_client
        self.config = settings.verification

    def create_temp_lead(self, email: Optional[str], phone: Optional[str], method: Optional[str]) -> Lead:
        """
        Create the placeholder lead the quote form verifies against before
        the full submission exists.
        """
        if not email or not phone or not method:
            raise ValidationError("Missing required fields: email, phone, and method are required")
        if method not in METHODS:
            raise ValidationError("Invalid verification method. Must be 'email' or 'sms'")

        lead = self.leads.create(
            customer_name=TEMP_CUSTOMER_NAME,
            customer_email=email.strip().lower(),
            customer_phone=phone.strip(),
            postal_code=TEMP_POSTAL_CODE,
            verification_method=method,
            is_verified=False,
            status=LeadStatus.PENDING_VERIFICATION,
        )
        logger.info(f"[green]✅ Temporary lead created:[/green] [cyan]{lead.id}[/cyan] ({method})")
        return lead

    def _get_lead(self, lead_id: Optional[str]) -> Lead:
        lead = self.leads.find_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead not found", ErrorType.LEAD_NOT_FOUND)
        return lead

    def _check_cooldown(self, lead: Lead) -> None:
        if not lead.verification_sent_at:
            return
        elapsed = (utcnow() - lead.verification_sent_at).total_seconds()
        remaining = int(self.config.resend_cooldown_seconds - elapsed)
        if remaining > 0:
            raise RateLimitedError(
                f"Please wait {remaining} seconds before requesting a new code",
                ErrorType.RESEND_COOLDOWN,
            )

    async def _dispatch(self, method: str, contact: str) -> Optional[str]:
        """
        Send the code through the provider.

        Returns:
            The code to store (email) or None when the provider keeps it (SMS)
        """
        if method == METHOD_EMAIL:
            code = random_digits(6)
            subject, html = verification_code_email(code, self.config.code_ttl_minutes)
            await with_timeout(
                self.email_client.send_email(contact, subject, html),
                self.config.send_timeout,
                "Resend",
            )
            return code

        await with_timeout(
            self.sms_client.start_verification(contact),
            self.config.send_timeout,
            "Twilio",
        )
        return None

    async def send_verification(self, lead_id: Optional[str], method: Optional[str], contact: Optional[str]) -> Dict[str, Any]:
        """
        Send a one-time code for a lead and record the verification window.

        Args:
            lead_id: Lead to verify
            method: "email" or "sms"
            contact: Email address or phone number the code goes to

        Returns:
            Response body; `partialFailure` is set when the code went out but
            the lead row could not be updated

        Raises:
            ValidationError: Missing or invalid input
            NotFoundError: Unknown lead
            RateLimitedError: A code was sent within the resend cooldown
            FunctionError: Provider timeout (504) or send failure (400)
        """
        if not lead_id or not method or not contact:
            raise ValidationError("Missing required fields: leadId, method, and contact are required")
        if method not in METHODS:
            raise ValidationError("Invalid verification method. Must be 'email' or 'sms'")

        contact = contact.strip()
        if method == METHOD_SMS:
            contact = normalize_phone(contact)
        else:
            contact = contact.lower()

        lead = self._get_lead(lead_id)
        self._check_cooldown(lead)

        logger.info(f"[cyan]📨 Sending {method} verification for lead[/cyan] {lead.id}")
        try:
            code = await self._dispatch(method, contact)
        except ExternalServiceTimeout as e:
            logger.error(f"[red]❌ {method} verification timed out:[/red] {e.message}")
            raise FunctionError(
                f"Failed to send {method} verification: {e.message}",
                ErrorType.TIMEOUT,
                504,
                details="The verification service took too long to respond. Please try again.",
                extra={"failureCategory": "timeout"},
            )
        except ExternalServiceError as e:
            category, copy = describe_failure(e.message, method)
            logger.error(f"[red]❌ Failed to send {method} verification[/red] ({category}): {e.message}")
            raise FunctionError(
                f"Failed to send {method} verification: {e.message}",
                ErrorType.VERIFICATION_SEND_FAILED,
                400,
                details=copy,
                extra={"failureCategory": category},
            )

        sent_at = utcnow()
        expires_at = sent_at + timedelta(minutes=self.config.code_ttl_minutes)
        try:
            lead.verification_token = code
            lead.verification_method = method
            lead.verification_sent_at = sent_at
            lead.verification_expires_at = expires_at
            lead.verification_attempts = 0
            lead.status = LeadStatus.PENDING_VERIFICATION
            if method == METHOD_SMS:
                lead.customer_phone = contact
            else:
                lead.customer_email = contact
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[red]❌ Verification sent but lead update failed:[/red] {e}")
            return {
                "success": True,
                "partialFailure": True,
                "errorType": ErrorType.DATABASE_UPDATE_FAILED,
                "message": f"Verification code sent via {method}, but we could not save it. Please request a new code if verification fails.",
            }

        return {
            "success": True,
            "message": f"Verification code sent via {method}",
            "method": method,
            "expiresAt": format_datetime(expires_at),
        }

    def _infer_method(self, lead: Lead) -> str:
        if lead.verification_method:
            return lead.verification_method
        if lead.customer_phone and not lead.customer_email:
            return METHOD_SMS
        if lead.customer_email:
            return METHOD_EMAIL
        raise ValidationError("Verification method not found. Please request a new verification code.")

    async def _sms_code_matches(self, lead: Lead, code: str) -> bool:
        if self.config.sms_test_mode:
            if not _SIX_DIGITS.match(code):
                raise FunctionError("Invalid verification code format. Must be 6 digits.", ErrorType.INVALID_CODE, 400)
            return True
        try:
            return await with_timeout(
                self.sms_client.check_verification(normalize_phone(lead.customer_phone or ""), code),
                self.config.send_timeout,
                "Twilio",
            )
        except ExternalServiceTimeout as e:
            raise FunctionError(e.message, ErrorType.TIMEOUT, 504)
        except ExternalServiceError as e:
            logger.error(f"[red]❌ SMS verification check failed:[/red] {e.message}")
            raise FunctionError("Failed to verify code with Twilio", ErrorType.GENERAL_ERROR, 400)

    async def verify(self, lead_id: Optional[str], code: Optional[str]) -> Dict[str, Any]:
        """
        Check a submitted code and mark the lead verified.

        Raises:
            NotFoundError: Unknown lead
            FunctionError: Expired or voided code (VERIFICATION_EXPIRED) or wrong code (INVALID_CODE)
        """
        if not lead_id or not code:
            raise ValidationError("Missing required fields: leadId and token are required")

        lead = self._get_lead(lead_id)

        if lead.is_verified:
            return {"success": True, "message": "Lead already verified", "leadId": lead.id, "alreadyVerified": True}

        if lead.verification_expires_at is None or utcnow() > lead.verification_expires_at:
            lead.status = LeadStatus.EXPIRED
            self.db.commit()
            logger.warning(f"[yellow]⚠️  Verification expired for lead[/yellow] {lead.id}")
            raise FunctionError("Verification code has expired", ErrorType.VERIFICATION_EXPIRED, 400)

        code = code.strip()
        method = self._infer_method(lead)
        if method == METHOD_SMS:
            matches = await self._sms_code_matches(lead, code)
        else:
            matches = bool(lead.verification_token) and hmac.compare_digest(lead.verification_token.encode(), code.encode())

        if not matches:
            lead.verification_attempts = (lead.verification_attempts or 0) + 1
            if lead.verification_attempts >= self.config.max_attempts:
                lead.verification_token = None
                lead.verification_expires_at = None
                lead.status = LeadStatus.EXPIRED
                self.db.commit()
                logger.warning(f"[yellow]⚠️  Too many wrong codes, verification voided for lead[/yellow] {lead.id}")
                raise FunctionError(
                    "Too many incorrect attempts. Please request a new code.",
                    ErrorType.VERIFICATION_EXPIRED,
                    400,
                )
            self.db.commit()
            logger.warning(f"[yellow]⚠️  Invalid verification code for lead[/yellow] {lead.id}")
            raise FunctionError("Invalid verification code", ErrorType.INVALID_CODE, 400)

        lead.is_verified = True
        lead.status = LeadStatus.VERIFIED
        lead.verification_token = None
        lead.verification_method = method
        self.db.commit()
        logger.info(f"[green]✅ Lead verified:[/green] [cyan]{lead.id}[/cyan] via {method}")

        return {
            "success": True,
            "message": "Verification successful! Your quote request is now being processed.",
            "leadId": lead.id,
        }
