"""
Retailer account provisioning from approved applications
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.core.security import hash_password
from pricemyfloor.database.models import (
    ApplicationStatus,
    Profile,
    Retailer,
    RetailerStatus,
    Role,
    User,
)
from pricemyfloor.external.messaging.resend_client import ResendClient
from pricemyfloor.repositories.retailer_repository import ApplicationRepository, RetailerRepository
from pricemyfloor.services.analytics_service import AnalyticsService
from pricemyfloor.services.auth_service import AuthService
from pricemyfloor.services.email_templates import retailer_credentials_email, retailer_welcome_email
from pricemyfloor.utils.exceptions import ConflictError, ExternalServiceError, FunctionError, NotFoundError, ValidationError
from pricemyfloor.utils.helpers import generate_temp_password, utcnow
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


def split_name(full_name: str):
    parts = (full_name or "").split()
    if not parts:
        return None, None
    return parts[0], " ".join(parts[1:]) or None


class AccountService:
    """
    Creates retailer logins for approved applications and reissues
    temporary passwords.
    """

    def __init__(self, db: Session, email_client: ResendClient):
        self.db = db
        self.applications = ApplicationRepository(db)
        self.retailers = RetailerRepository(db)
        self.auth = AuthService(db)
        self.analytics = AnalyticsService(db)
        self.email_client = email_client

    @property
    def login_url(self) -> str:
        return f"{settings.public_site_url.rstrip('/')}/retailer/login"

    def _upsert_profile(self, user: User, retailer: Retailer) -> Profile:
        first_name, last_name = split_name(retailer.contact_name)
        profile = self.db.get(Profile, user.id)
        if profile is None:
            profile = Profile(id=user.id, user=user)
            self.db.add(profile)
        profile.retailer_id = retailer.id
        profile.role = Role.RETAILER
        profile.first_name = first_name
        profile.last_name = last_name
        profile.password_reset_required = True
        profile.temp_password_generated_at = utcnow()
        return profile

    async def create_retailer_account(self, application_id: Optional[str], admin_user_id: str, client_ip: Optional[str] = None) -> Dict[str, Any]:
        """
        Approve a pending application and provision its account.

        Creates the user with a temporary password, the approved retailer
        and the profile, then sends a welcome email. Email failures are
        logged and do not undo the account.

        Raises:
            NotFoundError: Unknown application
            ValidationError: Application is not pending
            ConflictError: A login already exists for the email
        """
        if not application_id:
            raise ValidationError("applicationId is required")
        application = self.applications.find_by_id(application_id)
        if not application:
            raise NotFoundError("Application not found")
        if application.status != ApplicationStatus.PENDING:
            raise ValidationError(f"Application is already {application.status}")
        if self.auth.find_user_by_email(application.email):
            raise ConflictError("A user with this email already exists")

        temp_password = generate_temp_password()
        user = User(email=application.email.strip().lower(), password_hash=hash_password(temp_password), is_active=True)
        self.db.add(user)
        self.db.flush()

        retailer = Retailer(
            business_name=application.business_name,
            contact_name=application.contact_name,
            email=application.email.strip().lower(),
            phone=application.phone,
            address=application.business_address,
            city=application.city,
            postal_code=application.postal_code,
            website=application.website,
            business_description=application.business_description,
            years_in_business=application.years_in_business,
            brands_carried=list(application.brands_carried or []),
            services_offered=list(application.services_offered or []),
            service_areas=list(application.service_areas or []),
            insurance_provider=application.insurance_provider,
            business_license=application.business_license,
            business_references=application.business_references,
            postal_code_prefixes=[],
            status=RetailerStatus.APPROVED,
            user_id=user.id,
        )
        self.db.add(retailer)
        self.db.flush()

        self._upsert_profile(user, retailer)

        application.status = ApplicationStatus.APPROVED
        application.reviewed_at = utcnow()
        application.reviewed_by = admin_user_id

        self.analytics.record_admin_action(
            admin_user_id,
            "approve_application",
            target_retailer_id=retailer.id,
            details={"application_id": application.id, "business_name": retailer.business_name},
            ip_address=client_ip,
            commit=False,
        )
        self.db.commit()
        logger.info(f"[green]✅ Retailer account created:[/green] {retailer.business_name} ({retailer.id})")

        email_sent = True
        subject, html = retailer_welcome_email(
            retailer.email, retailer.business_name, retailer.contact_name, temp_password, self.login_url
        )
        try:
            await self.email_client.send_email(retailer.email, subject, html)
        except ExternalServiceError as e:
            email_sent = False
            logger.error(f"[red]❌ Welcome email failed for {retailer.email}:[/red] {e.message}")

        return {
            "success": True,
            "message": "Retailer account created successfully",
            "retailerId": retailer.id,
            "userId": user.id,
            "emailSent": email_sent,
        }

    async def resend_retailer_credentials(self, retailer_id: Optional[str], admin_user_id: str, client_ip: Optional[str] = None) -> Dict[str, Any]:
        """
        Issue a new temporary password for an approved retailer and email it.

        Raises:
            NotFoundError: Unknown retailer
            ValidationError: Retailer is not approved
            FunctionError: The credentials email could not be sent (500)
        """
        if not retailer_id:
            raise ValidationError("retailerId is required")
        retailer = self.retailers.find_by_id(retailer_id)
        if not retailer:
            raise NotFoundError("Retailer not found")
        if retailer.status != RetailerStatus.APPROVED:
            raise ValidationError("Credentials can only be sent to approved retailers")

        temp_password = generate_temp_password()
        user = self.db.get(User, retailer.user_id) if retailer.user_id else None
        if user is None:
            user = self.auth.find_user_by_email(retailer.email)
        if user is None:
            user = User(email=retailer.email.strip().lower(), password_hash=hash_password(temp_password), is_active=True)
            self.db.add(user)
            self.db.flush()
        else:
            user.password_hash = hash_password(temp_password)
            user.is_active = True
        retailer.user_id = user.id

        self._upsert_profile(user, retailer)
        self.analytics.record_admin_action(
            admin_user_id,
            "resend_credentials",
            target_retailer_id=retailer.id,
            details={"email": retailer.email},
            ip_address=client_ip,
            commit=False,
        )
        self.db.commit()

        subject, html = retailer_credentials_email(
            retailer.email, retailer.business_name, retailer.contact_name, temp_password, self.login_url
        )
        try:
            await self.email_client.send_email(retailer.email, subject, html)
        except ExternalServiceError as e:
            logger.error(f"[red]❌ Credentials email failed for {retailer.email}:[/red] {e.message}")
            raise FunctionError(f"Failed to send credentials email: {e.message}")

        logger.info(f"[green]✅ Credentials resent[/green] to {retailer.email}")
        return {"success": True, "message": "Credentials sent successfully", "retailerId": retailer.id}
