"""
Public retailer partner applications
"""
from typing import Any, Dict

from sqlalchemy.orm import Session

from pricemyfloor.database.models import ApplicationStatus, RetailerApplication
from pricemyfloor.repositories.retailer_repository import ApplicationRepository
from pricemyfloor.schemas.retailers import ApplicationCreate
from pricemyfloor.services.lead_intake_service import sanitize, validate_email
from pricemyfloor.utils.exceptions import ConflictError, ValidationError
from pricemyfloor.utils.helpers import format_datetime
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.phone import is_plausible_phone
from pricemyfloor.utils.postal_codes import format_postal_code, validate_postal_code

logger = get_logger(__name__)


def serialize_application(application: RetailerApplication) -> Dict[str, Any]:
    return {
        "id": application.id,
        "business_name": application.business_name,
        "contact_name": application.contact_name,
        "email": application.email,
        "phone": application.phone,
        "business_address": application.business_address,
        "city": application.city,
        "postal_code": application.postal_code,
        "website": application.website,
        "business_description": application.business_description,
        "years_in_business": application.years_in_business,
        "brands_carried": application.brands_carried or [],
        "services_offered": application.services_offered or [],
        "service_areas": application.service_areas or [],
        "insurance_provider": application.insurance_provider,
        "business_license": application.business_license,
        "business_references": application.business_references,
        "status": application.status,
        "reviewed_at": format_datetime(application.reviewed_at),
        "reviewed_by": application.reviewed_by,
        "notes": application.notes,
        "created_at": format_datetime(application.created_at),
    }


class ApplicationService:
    def __init__(self, db: Session):
        self.db = db
        self.applications = ApplicationRepository(db)

    def submit(self, data: ApplicationCreate) -> RetailerApplication:
        """
        Store a partner application for admin review.

        Raises:
            ValidationError: Bad email, phone or postal code
            ConflictError: A pending application already exists for the email
        """
        email = data.email.strip().lower()
        if not validate_email(email):
            raise ValidationError("Invalid email format")
        if not is_plausible_phone(data.phone.strip()):
            raise ValidationError("Invalid phone number format")
        postal_code = format_postal_code(data.postal_code)
        if not validate_postal_code(postal_code):
            raise ValidationError("Invalid Canadian postal code format")
        if self.applications.find_one_by(email=email, status=ApplicationStatus.PENDING):
            raise ConflictError("An application for this email is already under review")

        application = self.applications.create(
            business_name=sanitize(data.business_name),
            contact_name=sanitize(data.contact_name),
            email=email,
            phone=sanitize(data.phone),
            business_address=sanitize(data.business_address),
            city=sanitize(data.city),
            postal_code=postal_code,
            website=sanitize(data.website),
            business_description=sanitize(data.business_description),
            years_in_business=data.years_in_business,
            brands_carried=data.brands_carried,
            services_offered=data.services_offered,
            service_areas=data.service_areas,
            insurance_provider=sanitize(data.insurance_provider),
            business_license=sanitize(data.business_license),
            business_references=sanitize(data.business_references),
            status=ApplicationStatus.PENDING,
        )
        logger.info(f"[green]✅ Retailer application received:[/green] {application.business_name}")
        return application
