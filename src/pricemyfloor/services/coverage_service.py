"""
Retailer postal-code coverage areas
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pricemyfloor.core.config import settings
from pricemyfloor.database.models import Retailer
from pricemyfloor.utils.exceptions import ValidationError
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.postal_codes import (
    POSTAL_CODE_PRESETS,
    calculate_total_coverage,
    check_for_overlapping_prefixes,
    get_postal_prefix_info,
    normalize_prefix,
    validate_postal_prefix,
)

logger = get_logger(__name__)


def describe_coverage(prefixes: List[str]) -> Dict[str, Any]:
    return {
        "postal_code_prefixes": prefixes,
        "prefixes": [get_postal_prefix_info(prefix).model_dump() for prefix in prefixes],
        "summary": calculate_total_coverage(prefixes).model_dump(),
        "overlaps": check_for_overlapping_prefixes(prefixes).model_dump(),
        "max_prefixes": settings.coverage.max_prefixes,
    }


class CoverageService:
    def __init__(self, db: Session):
        self.db = db

    def get_coverage(self, retailer: Retailer) -> Dict[str, Any]:
        return describe_coverage(list(retailer.postal_code_prefixes or []))

    def update_coverage(self, retailer: Retailer, prefixes: Optional[List[str]]) -> Dict[str, Any]:
        """
        Replace the retailer's prefixes.

        Every prefix must validate; duplicates are dropped keeping first
        occurrence. Overlaps are reported back but allowed.
        """
        cleaned: List[str] = []
        errors: List[str] = []
        for raw in prefixes or []:
            prefix = normalize_prefix(raw)
            result = validate_postal_prefix(prefix)
            if not result.is_valid:
                errors.append(f"{raw}: {result.error}")
            elif prefix not in cleaned:
                cleaned.append(prefix)

        if errors:
            raise ValidationError("Invalid postal code prefixes", details="; ".join(errors))
        if len(cleaned) > settings.coverage.max_prefixes:
            raise ValidationError(f"At most {settings.coverage.max_prefixes} postal code prefixes are allowed")

        retailer.postal_code_prefixes = cleaned
        self.db.commit()
        logger.info(f"[green]✅ Coverage updated[/green] for retailer {retailer.id}: {', '.join(cleaned) or 'none'}")

        body = describe_coverage(cleaned)
        body["warnings"] = body["overlaps"]["conflicts"]
        return body

    @staticmethod
    def presets() -> Dict[str, List[str]]:
        return POSTAL_CODE_PRESETS
