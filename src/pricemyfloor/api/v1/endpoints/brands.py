"""
Public brand catalogue endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pricemyfloor.core.dependencies import get_db
from pricemyfloor.schemas.brands import BrandResponse
from pricemyfloor.services.brand_service import BrandService
from pricemyfloor.services.lead_intake_service import NO_PREFERENCE_BRAND
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/brands")


@router.get("", response_model=List[BrandResponse])
async def list_brands(
    category: Optional[str] = Query(None, description="Only brands in this flooring category"),
    featured: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Brands shown on the quote form, featured first.

    Args:
        category: Flooring category filter (e.g. "Vinyl")
        featured: Restrict to featured brands
        db: Database session
    """
    try:
        return BrandService(db).list_brands(category=category, featured=featured)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching brands:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/options")
async def brand_options(db: Session = Depends(get_db)):
    """Brand names for the quote form dropdown, with the no-preference choice"""
    try:
        names = [brand.name for brand in BrandService(db).list_brands()]
        return {"brands": names + [NO_PREFERENCE_BRAND]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching brand options:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/{slug}", response_model=BrandResponse)
async def get_brand(slug: str, db: Session = Depends(get_db)):
    try:
        return BrandService(db).get_by_slug(slug)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error fetching brand {slug}:[/red] {e}")
        raise FunctionError(str(e))
