"""
Lead and distribution queries
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from pricemyfloor.database.models import Lead, LeadDistribution, LeadPurchase
from pricemyfloor.repositories.base_repository import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for the leads table"""

    def __init__(self, db: Session):
        super().__init__(db, Lead)

    def count_since_by_ip(self, client_ip: str, since: datetime) -> int:
        return (
            self.db.query(func.count(Lead.id))
            .filter(Lead.client_ip == client_ip, Lead.created_at >= since)
            .scalar()
            or 0
        )

    def count_since_by_email(self, email: str, since: datetime) -> int:
        return (
            self.db.query(func.count(Lead.id))
            .filter(func.lower(Lead.customer_email) == email.lower(), Lead.created_at >= since)
            .scalar()
            or 0
        )

    def search(
        self,
        status: Optional[str] = None,
        verified: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Lead]:
        query = self.db.query(Lead).options(selectinload(Lead.distributions))
        if status:
            query = query.filter(Lead.status == status)
        if verified is not None:
            query = query.filter(Lead.is_verified == verified)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                func.lower(Lead.customer_name).like(pattern)
                | func.lower(Lead.customer_email).like(pattern)
                | func.lower(Lead.postal_code).like(pattern)
            )
        return query.order_by(Lead.created_at.desc()).offset(skip).limit(limit).all()


class DistributionRepository(BaseRepository[LeadDistribution]):
    """Repository for the lead_distributions table"""

    def __init__(self, db: Session):
        super().__init__(db, LeadDistribution)

    def find_for_retailer(
        self,
        retailer_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[LeadDistribution]:
        query = (
            self.db.query(LeadDistribution)
            .options(selectinload(LeadDistribution.lead))
            .filter(LeadDistribution.retailer_id == retailer_id)
        )
        if status:
            query = query.filter(LeadDistribution.status == status)
        return query.order_by(LeadDistribution.sent_at.desc()).offset(skip).limit(limit).all()

    def find_for_lead_and_retailer(self, lead_id: str, retailer_id: str) -> Optional[LeadDistribution]:
        return self.find_one_by(lead_id=lead_id, retailer_id=retailer_id)

    def spend_since(self, retailer_id: str, since: datetime) -> float:
        """Sum of charge amounts (or lead prices when uncharged) sent since a date"""
        total = (
            self.db.query(func.coalesce(func.sum(func.coalesce(LeadDistribution.charge_amount, LeadDistribution.lead_price)), 0))
            .filter(LeadDistribution.retailer_id == retailer_id, LeadDistribution.sent_at >= since)
            .scalar()
        )
        return float(total or 0)

    def count_since(self, retailer_id: str, since: datetime) -> int:
        return (
            self.db.query(func.count(LeadDistribution.id))
            .filter(LeadDistribution.retailer_id == retailer_id, LeadDistribution.sent_at >= since)
            .scalar()
            or 0
        )


class LeadPurchaseRepository(BaseRepository[LeadPurchase]):
    def __init__(self, db: Session):
        super().__init__(db, LeadPurchase)
