"""
Admin dashboard endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from pricemyfloor.core.dependencies import get_client_ip, get_db, require_admin
from pricemyfloor.database.models import User
from pricemyfloor.schemas.brands import BrandCreate, BrandResponse, BrandUpdate
from pricemyfloor.schemas.retailers import RejectApplicationRequest, RetailerStatusUpdate
from pricemyfloor.services.admin_service import AdminService
from pricemyfloor.services.brand_service import BrandService, serialize_brand
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/admin")


def get_admin_service(
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AdminService:
    return AdminService(db, admin.id, get_client_ip(request))


@router.get("/dashboard")
async def dashboard(service: AdminService = Depends(get_admin_service)):
    try:
        return service.dashboard()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error loading admin dashboard:[/red] {e}")
        raise FunctionError(str(e))


# Applications

@router.get("/applications")
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: AdminService = Depends(get_admin_service),
):
    try:
        applications = service.list_applications(status=status_filter, skip=skip, limit=limit)
        return {"total": len(applications), "skip": skip, "limit": limit, "applications": applications}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching applications:[/red] {e}")
        raise FunctionError(str(e))


@router.post("/applications/{application_id}/reject")
async def reject_application(
    application_id: str,
    body: RejectApplicationRequest,
    service: AdminService = Depends(get_admin_service),
):
    try:
        return service.reject_application(application_id, body.reason)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error rejecting application {application_id}:[/red] {e}")
        raise FunctionError(str(e))


# Retailers

@router.get("/retailers")
async def list_retailers(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: AdminService = Depends(get_admin_service),
):
    try:
        retailers = service.list_retailers(status=status_filter, search=search, skip=skip, limit=limit)
        return {"total": len(retailers), "skip": skip, "limit": limit, "retailers": retailers}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching retailers:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/retailers/{retailer_id}")
async def retailer_detail(retailer_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return service.retailer_detail(retailer_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching retailer {retailer_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.patch("/retailers/{retailer_id}/status")
async def update_retailer_status(
    retailer_id: str,
    body: RetailerStatusUpdate,
    service: AdminService = Depends(get_admin_service),
):
    try:
        return service.update_retailer_status(retailer_id, body.status)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating retailer {retailer_id} status:[/red] {e}")
        raise FunctionError(str(e))


# Brands

@router.post("/brands", response_model=BrandResponse, status_code=status.HTTP_201_CREATED)
async def create_brand(
    body: BrandCreate,
    service: AdminService = Depends(get_admin_service),
    db: Session = Depends(get_db),
):
    try:
        brand = BrandService(db).create_brand(body)
        service.audit("create_brand", details={"brand_id": brand.id, "name": brand.name})
        return brand
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating brand:[/red] {e}")
        raise FunctionError(str(e))


@router.put("/brands/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: str,
    body: BrandUpdate,
    service: AdminService = Depends(get_admin_service),
    db: Session = Depends(get_db),
):
    try:
        brand = BrandService(db).update_brand(brand_id, body)
        service.audit("update_brand", details={"brand_id": brand.id, "changes": body.model_dump(exclude_unset=True)})
        return brand
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating brand {brand_id}:[/red] {e}")
        raise FunctionError(str(e))


@router.delete("/brands/{brand_id}")
async def delete_brand(
    brand_id: str,
    service: AdminService = Depends(get_admin_service),
    db: Session = Depends(get_db),
):
    try:
        brand = BrandService(db).delete_brand(brand_id)
        service.audit("delete_brand", details=serialize_brand(brand))
        return {"success": True, "message": f"Brand '{brand.name}' deleted"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error deleting brand {brand_id}:[/red] {e}")
        raise FunctionError(str(e))


# Leads and settings

@router.get("/leads")
async def list_leads(
    status_filter: Optional[str] = Query(None, alias="status"),
    verified: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: AdminService = Depends(get_admin_service),
):
    try:
        leads = service.list_leads(status=status_filter, verified=verified, search=search, skip=skip, limit=limit)
        return {"total": len(leads), "skip": skip, "limit": limit, "leads": leads}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching leads:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/settings")
async def platform_settings(admin: User = Depends(require_admin)):
    return AdminService.platform_settings()
