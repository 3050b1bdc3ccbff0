"""
Retailer brand subscriptions per square-footage tier
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pricemyfloor.database.models import BrandSubscription, FlooringBrand, Retailer
from pricemyfloor.repositories.retailer_repository import SubscriptionRepository
from pricemyfloor.services.pricing import SQFT_TIERS, get_tier, tier_price
from pricemyfloor.utils.exceptions import NotFoundError, ValidationError
from pricemyfloor.utils.helpers import money, to_decimal
from pricemyfloor.utils.keyed_queue import KeyedTaskQueue
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)

# Serialises toggles per (retailer, brand) inside this process
subscription_queue = KeyedTaskQueue("subscriptions")


def serialize_subscription(subscription: BrandSubscription) -> Dict[str, Any]:
    return {
        "id": subscription.id,
        "brand_name": subscription.brand_name,
        "sqft_tier": subscription.sqft_tier,
        "sqft_tier_min": subscription.sqft_tier_min,
        "sqft_tier_max": subscription.sqft_tier_max,
        "accepts_installation": subscription.accepts_installation,
        "lead_price": money(subscription.lead_price),
        "is_active": subscription.is_active,
    }


class SubscriptionService:
    """Brand/tier subscription management for the retailer dashboard"""

    def __init__(self, db: Session, queue: KeyedTaskQueue = subscription_queue):
        self.db = db
        self.subscriptions = SubscriptionRepository(db)
        self.queue = queue

    def list_brand_subscriptions(self, retailer: Retailer) -> List[Dict[str, Any]]:
        """Every brand in the catalogue with the retailer's tiers for it"""
        by_brand: Dict[str, List[BrandSubscription]] = {}
        for subscription in self.subscriptions.find_for_retailer(retailer.id):
            by_brand.setdefault(subscription.brand_name, []).append(subscription)

        brands = self.db.query(FlooringBrand).order_by(FlooringBrand.name).all()
        result = []
        for brand in brands:
            tiers = by_brand.get(brand.name, [])
            result.append({
                "brand_name": brand.name,
                "slug": brand.slug,
                "logo_url": brand.logo_url,
                "categories": brand.categories or [],
                "subscriptions": [serialize_subscription(sub) for sub in tiers],
                "active_tiers": [sub.sqft_tier for sub in tiers if sub.is_active],
            })
        return result

    def list_tiers(self) -> List[Dict[str, Any]]:
        return [
            {
                "key": tier.key,
                "label": tier.label,
                "min_sqft": tier.min_sqft,
                "max_sqft": tier.max_sqft,
                "base_price": float(tier.base_price),
            }
            for tier in SQFT_TIERS
        ]

    def _require_brand(self, brand_name: Optional[str]) -> str:
        brand_name = (brand_name or "").strip()
        if not brand_name:
            raise ValidationError("brand_name is required")
        if self.db.query(FlooringBrand.id).filter(FlooringBrand.name == brand_name).first() is None:
            raise NotFoundError(f"Brand '{brand_name}' not found")
        return brand_name

    async def toggle_tier(self, retailer: Retailer, brand_name: Optional[str], tier_key: Optional[str], enabled: bool) -> Dict[str, Any]:
        """
        Turn one brand tier on or off for a retailer.

        Toggles for the same (retailer, brand) run one after another, so two
        rapid clicks on the same tier leave a single row.
        """
        brand_name = self._require_brand(brand_name)
        tier = get_tier(tier_key or "")
        if tier is None:
            raise ValidationError(f"Unknown square footage tier '{tier_key}'")

        return await self.queue.run(
            (retailer.id, brand_name),
            self._apply_toggle,
            retailer,
            brand_name,
            tier.key,
            enabled,
        )

    async def _apply_toggle(self, retailer: Retailer, brand_name: str, tier_key: str, enabled: bool) -> Dict[str, Any]:
        tier = get_tier(tier_key)
        existing = self.subscriptions.find_tier(retailer.id, brand_name, tier_key)
        if existing is not None:
            existing.is_active = enabled
            self.db.commit()
            logger.info(f"[cyan]🔁 Subscription {brand_name}/{tier_key}[/cyan] active={enabled} for retailer {retailer.id}")
            return serialize_subscription(existing)

        if not enabled:
            return {"brand_name": brand_name, "sqft_tier": tier_key, "is_active": False}

        accepts_installation = retailer.installation_preference in ("yes", "both")
        subscription = BrandSubscription(
            retailer_id=retailer.id,
            brand_name=brand_name,
            sqft_tier=tier.key,
            sqft_tier_min=tier.min_sqft,
            sqft_tier_max=tier.max_sqft,
            accepts_installation=accepts_installation,
            lead_price=tier_price(tier, accepts_installation),
            is_active=True,
        )
        self.db.add(subscription)
        try:
            self.db.commit()
        except IntegrityError:
            # Another process inserted the same tier first
            self.db.rollback()
            subscription = self.subscriptions.find_tier(retailer.id, brand_name, tier_key)
            subscription.is_active = True
            self.db.commit()
        logger.info(f"[green]✅ Subscribed[/green] retailer {retailer.id} to {brand_name}/{tier_key}")
        return serialize_subscription(subscription)

    def _get_owned(self, retailer: Retailer, subscription_id: str) -> BrandSubscription:
        subscription = self.subscriptions.find_by_id(subscription_id)
        if not subscription or subscription.retailer_id != retailer.id:
            raise NotFoundError("Subscription not found")
        return subscription

    async def toggle_installation(self, retailer: Retailer, subscription_id: str, accepts_installation: bool) -> Dict[str, Any]:
        """Flip installation acceptance; the tier price follows unless it was customised"""
        subscription = self._get_owned(retailer, subscription_id)

        async def apply() -> Dict[str, Any]:
            tier = get_tier(subscription.sqft_tier)
            if tier is not None and to_decimal(subscription.lead_price) == tier_price(tier, subscription.accepts_installation):
                subscription.lead_price = tier_price(tier, accepts_installation)
            subscription.accepts_installation = accepts_installation
            self.db.commit()
            return serialize_subscription(subscription)

        return await self.queue.run((retailer.id, subscription.brand_name), apply)

    def update_subscription(
        self,
        retailer: Retailer,
        subscription_id: str,
        lead_price: Optional[Decimal] = None,
        sqft_tier_min: Optional[int] = None,
        sqft_tier_max: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        subscription = self._get_owned(retailer, subscription_id)

        if lead_price is not None:
            if to_decimal(lead_price) < 0:
                raise ValidationError("lead_price cannot be negative")
            subscription.lead_price = to_decimal(lead_price)

        new_min = sqft_tier_min if sqft_tier_min is not None else subscription.sqft_tier_min
        new_max = sqft_tier_max if sqft_tier_max is not None else subscription.sqft_tier_max
        if new_min < 0 or (new_max is not None and new_max < new_min):
            raise ValidationError("Invalid square footage bounds")
        subscription.sqft_tier_min = new_min
        subscription.sqft_tier_max = new_max

        if is_active is not None:
            subscription.is_active = is_active

        self.db.commit()
        return serialize_subscription(subscription)
