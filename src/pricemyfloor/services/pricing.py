"""
Square-footage tiers, lead prices and credit packages
"""
import re
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel


class SqftTier(BaseModel):
    key: str
    label: str
    min_sqft: int
    max_sqft: Optional[int]  # None means no upper bound
    base_price: Decimal

    def contains(self, square_footage: int) -> bool:
        if square_footage < self.min_sqft:
            return False
        return self.max_sqft is None or square_footage <= self.max_sqft


class CreditPackage(BaseModel):
    key: str
    credits: int
    price: int  # whole CAD dollars
    name: str


SQFT_TIERS: List[SqftTier] = [
    SqftTier(key="0-100", label="0 - 100 sq ft", min_sqft=0, max_sqft=100, base_price=Decimal("1.00")),
    SqftTier(key="100-500", label="100 - 500 sq ft", min_sqft=101, max_sqft=500, base_price=Decimal("2.50")),
    SqftTier(key="500-1000", label="500 - 1,000 sq ft", min_sqft=501, max_sqft=1000, base_price=Decimal("3.50")),
    SqftTier(key="1000-5000", label="1,000 - 5,000 sq ft", min_sqft=1001, max_sqft=5000, base_price=Decimal("5.00")),
    SqftTier(key="5000+", label="5,000+ sq ft", min_sqft=5001, max_sqft=None, base_price=Decimal("10.00")),
]

TIERS_BY_KEY: Dict[str, SqftTier] = {tier.key: tier for tier in SQFT_TIERS}

INSTALLATION_ADDON = Decimal("0.50")

DEFAULT_SQUARE_FOOTAGE = 500

CREDIT_PACKAGES: Dict[str, CreditPackage] = {
    "100": CreditPackage(key="100", credits=100, price=200, name="100 Lead Credits"),
    "200": CreditPackage(key="200", credits=200, price=380, name="200 Lead Credits"),
    "500": CreditPackage(key="500", credits=500, price=800, name="500 Lead Credits"),
}


def get_tier(key: str) -> Optional[SqftTier]:
    return TIERS_BY_KEY.get(key)


def tier_for_square_footage(square_footage: int) -> SqftTier:
    for tier in SQFT_TIERS:
        if tier.contains(square_footage):
            return tier
    return SQFT_TIERS[-1]


def calculate_lead_price(square_footage: int) -> Decimal:
    """Base price of a lead by project size"""
    return tier_for_square_footage(square_footage).base_price


def tier_price(tier: SqftTier, accepts_installation: bool) -> Decimal:
    return tier.base_price + (INSTALLATION_ADDON if accepts_installation else Decimal("0"))


def parse_square_footage(size: Optional[str]) -> int:
    """First integer in strings like "500 sq ft" or "1000-2000 sq ft"; 500 when absent"""
    match = re.search(r"\d+", (size or "").replace(",", ""))
    return int(match.group(0)) if match else DEFAULT_SQUARE_FOOTAGE
