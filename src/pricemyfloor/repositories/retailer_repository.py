"""
Retailer, application and subscription queries
"""
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from pricemyfloor.database.models import (
    BrandSubscription,
    Retailer,
    RetailerApplication,
    RetailerStatus,
)
from pricemyfloor.repositories.base_repository import BaseRepository


class RetailerRepository(BaseRepository[Retailer]):
    """Repository for the retailers table"""

    def __init__(self, db: Session):
        super().__init__(db, Retailer)

    def find_approved(self) -> List[Retailer]:
        return (
            self.db.query(Retailer)
            .filter(Retailer.status == RetailerStatus.APPROVED)
            .order_by(Retailer.created_at)
            .all()
        )

    def search(self, status: Optional[str] = None, search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Retailer]:
        query = self.db.query(Retailer)
        if status:
            query = query.filter(Retailer.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                func.lower(Retailer.business_name).like(pattern)
                | func.lower(Retailer.contact_name).like(pattern)
                | func.lower(Retailer.email).like(pattern)
            )
        return query.order_by(Retailer.created_at.desc()).offset(skip).limit(limit).all()


class ApplicationRepository(BaseRepository[RetailerApplication]):
    """Repository for the retailer_applications table"""

    def __init__(self, db: Session):
        super().__init__(db, RetailerApplication)

    def search(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[RetailerApplication]:
        query = self.db.query(RetailerApplication)
        if status:
            query = query.filter(RetailerApplication.status == status)
        return query.order_by(RetailerApplication.created_at.desc()).offset(skip).limit(limit).all()


class SubscriptionRepository(BaseRepository[BrandSubscription]):
    """Repository for the brand_subscriptions table"""

    def __init__(self, db: Session):
        super().__init__(db, BrandSubscription)

    def find_for_retailer(self, retailer_id: str) -> List[BrandSubscription]:
        return (
            self.db.query(BrandSubscription)
            .filter(BrandSubscription.retailer_id == retailer_id)
            .order_by(BrandSubscription.brand_name, BrandSubscription.sqft_tier_min)
            .all()
        )

    def find_tier(self, retailer_id: str, brand_name: str, tier: str) -> Optional[BrandSubscription]:
        return self.find_one_by(retailer_id=retailer_id, brand_name=brand_name, sqft_tier=tier)

    def find_active(self, brand_name: Optional[str] = None) -> List[BrandSubscription]:
        query = self.db.query(BrandSubscription).filter(BrandSubscription.is_active.is_(True))
        if brand_name is not None:
            query = query.filter(BrandSubscription.brand_name == brand_name)
        return query.all()
