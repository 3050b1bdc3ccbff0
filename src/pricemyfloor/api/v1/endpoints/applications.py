"""
Retailer partner application intake
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pricemyfloor.core.dependencies import get_db
from pricemyfloor.schemas.retailers import ApplicationCreate
from pricemyfloor.services.application_service import ApplicationService
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/applications")


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_application(body: ApplicationCreate, db: Session = Depends(get_db)):
    try:
        application = ApplicationService(db).submit(body)
        return {
            "success": True,
            "message": "Application submitted. We will review it and contact you shortly.",
            "applicationId": application.id,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error submitting retailer application:[/red] {e}")
        raise FunctionError(str(e))
