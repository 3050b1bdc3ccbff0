"""
Payment method, transaction, billing record and credit queries
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from pricemyfloor.database.models import (
    BillingRecord,
    PaymentMethod,
    PaymentTransaction,
    RetailerLeadCredits,
)
from pricemyfloor.repositories.base_repository import BaseRepository


class PaymentMethodRepository(BaseRepository[PaymentMethod]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentMethod)

    def find_for_retailer(self, retailer_id: str) -> List[PaymentMethod]:
        return (
            self.db.query(PaymentMethod)
            .filter(PaymentMethod.retailer_id == retailer_id)
            .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at)
            .all()
        )

    def find_default(self, retailer_id: str) -> Optional[PaymentMethod]:
        return self.find_one_by(retailer_id=retailer_id, is_default=True)


class TransactionRepository(BaseRepository[PaymentTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentTransaction)

    def find_by_payment_intent(self, payment_intent_id: str) -> List[PaymentTransaction]:
        return self.find_by(stripe_payment_intent_id=payment_intent_id)


class BillingRecordRepository(BaseRepository[BillingRecord]):
    def __init__(self, db: Session):
        super().__init__(db, BillingRecord)

    def recent_for_retailer(self, retailer_id: str, limit: int = 20) -> List[BillingRecord]:
        return (
            self.db.query(BillingRecord)
            .filter(BillingRecord.retailer_id == retailer_id)
            .order_by(BillingRecord.created_at.desc())
            .limit(limit)
            .all()
        )

    def find_outstanding_charge(self, distribution_id: str) -> Optional[BillingRecord]:
        """Lead charge carried on the retailer balance and not yet settled"""
        return self.find_one_by(lead_distribution_id=distribution_id, billing_type="lead_charge", status="pending")


class CreditRepository(BaseRepository[RetailerLeadCredits]):
    def __init__(self, db: Session):
        super().__init__(db, RetailerLeadCredits)

    def for_retailer(self, retailer_id: str) -> Optional[RetailerLeadCredits]:
        return self.find_one_by(retailer_id=retailer_id)
