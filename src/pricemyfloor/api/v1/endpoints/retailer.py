"""
Retailer dashboard endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pricemyfloor.core.dependencies import get_db, get_stripe_client, require_retailer
from pricemyfloor.database.models import Retailer
from pricemyfloor.external.payments.stripe_client import StripeClient
from pricemyfloor.schemas.retailers import (
    CoverageUpdate,
    InstallationToggle,
    RetailerSettingsUpdate,
    SubscriptionUpdate,
    TierToggle,
)
from pricemyfloor.services.billing_service import BillingService, serialize_payment_method
from pricemyfloor.services.coverage_service import CoverageService
from pricemyfloor.services.retailer_service import RetailerService
from pricemyfloor.services.subscription_service import SubscriptionService
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/retailer")


@router.get("/dashboard")
async def dashboard(retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    try:
        return RetailerService(db).dashboard(retailer)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error loading dashboard for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


# Leads

@router.get("/leads")
async def list_leads(
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        leads = RetailerService(db).list_leads(retailer, status=status, skip=skip, limit=limit)
        return {"total": len(leads), "skip": skip, "limit": limit, "leads": leads}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching leads for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/leads/{lead_id}")
async def get_lead(lead_id: str, retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    """Lead detail; marks the lead viewed"""
    try:
        return RetailerService(db).get_lead(retailer, lead_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching lead {lead_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/leads/{lead_id}/responded")
async def mark_responded(lead_id: str, retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    try:
        return RetailerService(db).mark_responded(retailer, lead_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error marking lead {lead_id} responded:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/leads/{lead_id}/lock")
async def lock_lead(lead_id: str, retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    try:
        return RetailerService(db).lock_lead(retailer, lead_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error locking lead {lead_id}:[/red] {e}")
        raise FunctionError(str(e))


# Settings

@router.get("/settings")
async def get_settings(retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    return RetailerService(db).get_settings(retailer)


@router.put("/settings")
async def update_settings(
    body: RetailerSettingsUpdate,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        return RetailerService(db).update_settings(retailer, body)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating settings for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


# Subscriptions

@router.get("/subscriptions")
async def list_subscriptions(retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    try:
        service = SubscriptionService(db)
        return {"tiers": service.list_tiers(), "brands": service.list_brand_subscriptions(retailer)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching subscriptions for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/subscriptions/toggle")
async def toggle_tier(
    body: TierToggle,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        return await SubscriptionService(db).toggle_tier(retailer, body.brand_name, body.sqft_tier, body.enabled)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error toggling {body.brand_name}/{body.sqft_tier}:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/subscriptions/{subscription_id}/installation")
async def toggle_installation(
    subscription_id: str,
    body: InstallationToggle,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        return await SubscriptionService(db).toggle_installation(retailer, subscription_id, body.accepts_installation)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error toggling installation for subscription {subscription_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.patch("/subscriptions/{subscription_id}")
async def update_subscription(
    subscription_id: str,
    body: SubscriptionUpdate,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        return SubscriptionService(db).update_subscription(retailer, subscription_id, **body.model_dump(exclude_unset=True))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating subscription {subscription_id}:[/red] {e}")
        raise FunctionError(str(e))


# Coverage

@router.get("/coverage")
async def get_coverage(retailer: Retailer = Depends(require_retailer), db: Session = Depends(get_db)):
    return CoverageService(db).get_coverage(retailer)


@router.put("/coverage")
async def update_coverage(
    body: CoverageUpdate,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    try:
        return CoverageService(db).update_coverage(retailer, body.postal_code_prefixes)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating coverage for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/coverage/presets")
async def coverage_presets(retailer: Retailer = Depends(require_retailer)):
    return {"presets": CoverageService.presets()}


# Billing

@router.get("/billing")
async def billing_summary(
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    try:
        return BillingService(db, stripe_client).billing_summary(retailer)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error loading billing for retailer {retailer.id}:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/payment-methods")
async def list_payment_methods(
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    methods = BillingService(db, stripe_client).list_payment_methods(retailer)
    return {"payment_methods": [serialize_payment_method(method) for method in methods]}


@router.post("/payment-methods/{method_id}/default")
async def set_default_payment_method(
    method_id: str,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    try:
        method = BillingService(db, stripe_client).set_default_payment_method(retailer, method_id)
        return serialize_payment_method(method)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error setting default payment method {method_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.delete("/payment-methods/{method_id}")
async def delete_payment_method(
    method_id: str,
    retailer: Retailer = Depends(require_retailer),
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    try:
        await BillingService(db, stripe_client).delete_payment_method(retailer, method_id)
        return {"success": True, "message": "Payment method removed"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error deleting payment method {method_id}:[/red] {e}")
        raise FunctionError(str(e))
