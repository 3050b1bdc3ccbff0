"""
Quote funnel and billing functions called by the web front-end
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.core.dependencies import (
    get_client_ip,
    get_db,
    get_email_client,
    get_sms_client,
    get_stripe_client,
    get_user_agent,
    require_admin,
    require_retailer,
)
from pricemyfloor.database.models import Retailer, User
from pricemyfloor.external.messaging.resend_client import ResendClient
from pricemyfloor.external.messaging.twilio_verify import TwilioVerifyClient
from pricemyfloor.external.payments.stripe_client import StripeClient
from pricemyfloor.schemas.billing import PurchaseCreditsRequest, SavePaymentMethodRequest, SetupIntentResponse
from pricemyfloor.schemas.leads import (
    ChargeLeadPaymentRequest,
    DistributeLeadRequest,
    LeadSubmission,
    LeadSubmissionResponse,
    SendVerificationRequest,
    TempLeadRequest,
    VerifyLeadRequest,
)
from pricemyfloor.schemas.retailers import CreateRetailerAccountRequest, ResendCredentialsRequest
from pricemyfloor.services.account_service import AccountService
from pricemyfloor.services.billing_service import BillingService, serialize_payment_method
from pricemyfloor.services.distribution_service import DistributionService
from pricemyfloor.services.lead_intake_service import LeadIntakeService
from pricemyfloor.services.verification_service import VerificationService
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/functions")


def get_verification_service(
    db: Session = Depends(get_db),
    email_client: ResendClient = Depends(get_email_client),
    sms_client: TwilioVerifyClient = Depends(get_sms_client),
) -> VerificationService:
    return VerificationService(db, email_client, sms_client)


def get_billing_service(
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> BillingService:
    return BillingService(db, stripe_client)


def get_distribution_service(
    db: Session = Depends(get_db),
    billing: BillingService = Depends(get_billing_service),
    email_client: ResendClient = Depends(get_email_client),
) -> DistributionService:
    return DistributionService(db, billing, email_client)


@router.post("/secure-lead-handler", response_model=LeadSubmissionResponse)
async def secure_lead_handler(
    submission: LeadSubmission,
    request: Request,
    db: Session = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
):
    """
    Public quote form submission.

    Validates and rate limits the request, stores the lead and emails a
    verification code.
    """
    try:
        service = LeadIntakeService(db, verification)
        return await service.submit(
            submission,
            client_ip=get_client_ip(request),
            user_agent=get_user_agent(request),
            referrer=request.headers.get("referer"),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error handling lead submission:[/red] {e}")
        raise FunctionError("Internal server error")


@router.post("/insert-temp-lead")
async def insert_temp_lead(
    body: TempLeadRequest,
    verification: VerificationService = Depends(get_verification_service),
):
    """Placeholder lead the form verifies before the full submission"""
    try:
        lead = verification.create_temp_lead(body.email, body.phone, body.method)
        return {"success": True, "leadId": lead.id}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating temporary lead:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/send-verification")
async def send_verification(
    body: SendVerificationRequest,
    verification: VerificationService = Depends(get_verification_service),
):
    try:
        return await verification.send_verification(body.lead_id, body.method, body.contact)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error sending verification:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/verify-lead")
async def verify_lead(
    body: VerifyLeadRequest,
    verification: VerificationService = Depends(get_verification_service),
    distribution: DistributionService = Depends(get_distribution_service),
):
    """
    Check a verification code. A newly verified lead is distributed right
    away; distribution problems never fail the verification.
    """
    try:
        result = await verification.verify(body.lead_id, body.token)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error verifying lead:[/red] {e}")
        raise FunctionError(str(e))

    if not result.get("alreadyVerified"):
        try:
            summary = await distribution.distribute(result["leadId"])
            result["distribution"] = {
                "distributions_created": summary["distributions_created"],
                "total_matching_retailers": summary["total_matching_retailers"],
            }
        except Exception as e:
            logger.error(f"[red]Distribution after verification failed for lead {result['leadId']}:[/red] {e}")
    return result


@router.post("/distribute-lead")
async def distribute_lead(
    body: DistributeLeadRequest,
    admin: User = Depends(require_admin),
    distribution: DistributionService = Depends(get_distribution_service),
):
    try:
        return await distribution.distribute(body.lead_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error distributing lead {body.lead_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/charge-lead-payment")
async def charge_lead_payment(
    body: ChargeLeadPaymentRequest,
    admin: User = Depends(require_admin),
    billing: BillingService = Depends(get_billing_service),
):
    try:
        return await billing.charge_distribution(body.distribution_id, body.amount)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error charging distribution {body.distribution_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/create-retailer-account")
async def create_retailer_account(
    body: CreateRetailerAccountRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    email_client: ResendClient = Depends(get_email_client),
):
    try:
        service = AccountService(db, email_client)
        return await service.create_retailer_account(body.application_id, admin.id, get_client_ip(request))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating retailer account:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/resend-retailer-credentials")
async def resend_retailer_credentials(
    body: ResendCredentialsRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    email_client: ResendClient = Depends(get_email_client),
):
    try:
        service = AccountService(db, email_client)
        return await service.resend_retailer_credentials(body.retailer_id, admin.id, get_client_ip(request))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error resending retailer credentials:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/create-setup-intent", response_model=SetupIntentResponse)
async def create_setup_intent(
    retailer: Retailer = Depends(require_retailer),
    billing: BillingService = Depends(get_billing_service),
):
    try:
        return await billing.create_setup_intent(retailer)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating setup intent:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/save-payment-method")
async def save_payment_method(
    body: SavePaymentMethodRequest,
    retailer: Retailer = Depends(require_retailer),
    billing: BillingService = Depends(get_billing_service),
):
    try:
        method = await billing.save_payment_method(retailer, body.payment_method_id)
        return {"success": True, "paymentMethod": serialize_payment_method(method)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error saving payment method:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/purchase-lead-credits")
async def purchase_lead_credits(
    body: PurchaseCreditsRequest,
    request: Request,
    retailer: Retailer = Depends(require_retailer),
    billing: BillingService = Depends(get_billing_service),
):
    try:
        return await billing.purchase_credits(
            retailer,
            user_id=retailer.user_id or "",
            package_type=body.package_type,
            origin=request.headers.get("origin"),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating credit checkout:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    billing: BillingService = Depends(get_billing_service),
):
    """Stripe event receiver; the raw body is needed for signature checks"""
    payload = await request.body()
    try:
        return billing.handle_webhook(payload, stripe_signature)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error processing Stripe webhook:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/google-maps-config")
async def google_maps_config():
    """Maps JS API key for the address autocomplete"""
    if not settings.google_maps.api_key:
        logger.error("[red]Google Maps API key not configured[/red]")
        raise FunctionError("Google Maps API key not configured")
    return {"apiKey": settings.google_maps.api_key}
