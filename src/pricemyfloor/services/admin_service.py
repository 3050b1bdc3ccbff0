"""
Admin back office: review, retailer management and audit trail
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import (
    ApplicationStatus,
    FlooringBrand,
    Lead,
    LeadDistribution,
    Retailer,
    RetailerApplication,
    RetailerStatus,
)
from pricemyfloor.repositories.lead_repository import LeadRepository
from pricemyfloor.repositories.retailer_repository import ApplicationRepository, RetailerRepository
from pricemyfloor.services.analytics_service import AnalyticsService
from pricemyfloor.services.application_service import serialize_application
from pricemyfloor.services.pricing import CREDIT_PACKAGES, INSTALLATION_ADDON, SQFT_TIERS
from pricemyfloor.services.retailer_service import serialize_distribution, serialize_lead
from pricemyfloor.services.subscription_service import serialize_subscription
from pricemyfloor.utils.exceptions import NotFoundError, ValidationError
from pricemyfloor.utils.helpers import format_datetime, money, utcnow
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_retailer(retailer: Retailer) -> Dict[str, Any]:
    return {
        "id": retailer.id,
        "business_name": retailer.business_name,
        "contact_name": retailer.contact_name,
        "email": retailer.email,
        "phone": retailer.phone,
        "city": retailer.city,
        "province": retailer.province,
        "postal_code": retailer.postal_code,
        "status": retailer.status,
        "postal_code_prefixes": retailer.postal_code_prefixes or [],
        "installation_preference": retailer.installation_preference,
        "current_balance": money(retailer.current_balance),
        "monthly_budget_cap": money(retailer.monthly_budget_cap),
        "user_id": retailer.user_id,
        "created_at": format_datetime(retailer.created_at),
    }


class AdminService:
    """Operations behind the admin dashboard; every write is audited"""

    def __init__(self, db: Session, admin_user_id: str, client_ip: Optional[str] = None):
        self.db = db
        self.admin_user_id = admin_user_id
        self.client_ip = client_ip
        self.applications = ApplicationRepository(db)
        self.retailers = RetailerRepository(db)
        self.leads = LeadRepository(db)
        self.analytics = AnalyticsService(db)

    def audit(self, action_type: str, target_retailer_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        self.analytics.record_admin_action(
            self.admin_user_id,
            action_type,
            target_retailer_id=target_retailer_id,
            details=details,
            ip_address=self.client_ip,
        )

    def dashboard(self) -> Dict[str, Any]:
        def count(model, *criteria) -> int:
            return self.db.query(func.count(model.id)).filter(*criteria).scalar() or 0

        return {
            "pending_applications": count(RetailerApplication, RetailerApplication.status == ApplicationStatus.PENDING),
            "approved_retailers": count(Retailer, Retailer.status == RetailerStatus.APPROVED),
            "total_retailers": count(Retailer),
            "total_leads": count(Lead),
            "verified_leads": count(Lead, Lead.is_verified.is_(True)),
            "total_distributions": count(LeadDistribution),
            "total_brands": count(FlooringBrand),
        }

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def list_applications(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return [serialize_application(app) for app in self.applications.search(status=status, skip=skip, limit=limit)]

    def reject_application(self, application_id: str, reason: Optional[str]) -> Dict[str, Any]:
        application = self.applications.find_by_id(application_id)
        if not application:
            raise NotFoundError("Application not found")
        if application.status != ApplicationStatus.PENDING:
            raise ValidationError(f"Application is already {application.status}")

        application.status = ApplicationStatus.REJECTED
        application.reviewed_at = utcnow()
        application.reviewed_by = self.admin_user_id
        application.notes = (reason or "").strip() or None
        self.db.commit()
        self.audit("reject_application", details={"application_id": application.id, "reason": application.notes})
        logger.info(f"[yellow]Application rejected:[/yellow] {application.business_name}")
        return serialize_application(application)

    # ------------------------------------------------------------------
    # Retailers
    # ------------------------------------------------------------------

    def list_retailers(self, status: Optional[str] = None, search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        if status and status not in RetailerStatus.ALL:
            raise ValidationError(f"Unknown retailer status '{status}'")
        return [serialize_retailer(r) for r in self.retailers.search(status=status, search=search, skip=skip, limit=limit)]

    def _get_retailer(self, retailer_id: str) -> Retailer:
        retailer = self.retailers.find_by_id(retailer_id)
        if not retailer:
            raise NotFoundError("Retailer not found")
        return retailer

    def retailer_detail(self, retailer_id: str) -> Dict[str, Any]:
        retailer = self._get_retailer(retailer_id)
        body = serialize_retailer(retailer)
        body["subscriptions"] = [serialize_subscription(sub) for sub in retailer.subscriptions]
        body["distributions"] = [serialize_distribution(d, include_lead=False) for d in retailer.distributions]
        return body

    def update_retailer_status(self, retailer_id: str, status: Optional[str]) -> Dict[str, Any]:
        if status not in RetailerStatus.ALL:
            raise ValidationError(f"Status must be one of: {', '.join(RetailerStatus.ALL)}")
        retailer = self._get_retailer(retailer_id)
        previous = retailer.status
        retailer.status = status
        self.db.commit()
        self.audit("update_retailer_status", retailer.id, {"from": previous, "to": status})
        return serialize_retailer(retailer)

    # ------------------------------------------------------------------
    # Leads and settings
    # ------------------------------------------------------------------

    def list_leads(self, status: Optional[str] = None, verified: Optional[bool] = None, search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        leads = self.leads.search(status=status, verified=verified, search=search, skip=skip, limit=limit)
        result = []
        for lead in leads:
            body = serialize_lead(lead)
            body["distributions"] = [serialize_distribution(d, include_lead=False) for d in lead.distributions]
            result.append(body)
        return result

    @staticmethod
    def platform_settings() -> Dict[str, Any]:
        """Read-only view of the pricing and funnel configuration"""
        return {
            "sqft_tiers": [
                {"key": tier.key, "label": tier.label, "base_price": float(tier.base_price)}
                for tier in SQFT_TIERS
            ],
            "installation_addon": float(INSTALLATION_ADDON),
            "credit_packages": [package.model_dump() for package in CREDIT_PACKAGES.values()],
            "max_retailers_per_lead": settings.distribution.max_retailers,
            "exclusive_lock_multiplier": settings.distribution.exclusive_lock_multiplier,
            "max_coverage_prefixes": settings.coverage.max_prefixes,
            "rate_limit": settings.rate_limit.model_dump(),
            "verification_code_ttl_minutes": settings.verification.code_ttl_minutes,
            "currency": settings.billing.currency,
            "auto_charge": settings.billing.auto_charge,
        }
