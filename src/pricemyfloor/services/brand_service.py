"""
Flooring brand catalogue
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pricemyfloor.database.models import FlooringBrand
from pricemyfloor.repositories.base_repository import BaseRepository
from pricemyfloor.schemas.brands import BrandCreate, BrandUpdate
from pricemyfloor.utils.exceptions import ConflictError, NotFoundError, ValidationError
from pricemyfloor.utils.logging import get_logger
from pricemyfloor.utils.slugs import slugify

logger = get_logger(__name__)


def serialize_brand(brand: FlooringBrand) -> Dict[str, Any]:
    return {
        "id": brand.id,
        "name": brand.name,
        "slug": brand.slug,
        "categories": brand.categories or [],
        "description": brand.description,
        "logo_url": brand.logo_url,
        "website": brand.website,
        "installation": brand.installation,
        "featured": brand.featured,
    }


class BrandService:
    def __init__(self, db: Session):
        self.db = db
        self.brands = BaseRepository(db, FlooringBrand)

    def list_brands(self, category: Optional[str] = None, featured: Optional[bool] = None) -> List[FlooringBrand]:
        query = self.db.query(FlooringBrand)
        if featured is not None:
            query = query.filter(FlooringBrand.featured.is_(featured))
        brands = query.order_by(FlooringBrand.featured.desc(), FlooringBrand.name).all()
        if category:
            # JSON array membership, filtered here to stay portable across databases
            wanted = category.lower()
            brands = [brand for brand in brands if wanted in [c.lower() for c in brand.categories or []]]
        return brands

    def get_by_slug(self, slug: str) -> FlooringBrand:
        brand = self.brands.find_one_by(slug=slug)
        if not brand:
            raise NotFoundError(f"Brand '{slug}' not found")
        return brand

    def _get(self, brand_id: str) -> FlooringBrand:
        brand = self.brands.find_by_id(brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    def _check_unique(self, name: str, slug: str, exclude_id: Optional[str] = None) -> None:
        for field, value in (("name", name), ("slug", slug)):
            existing = self.brands.find_one_by(**{field: value})
            if existing and existing.id != exclude_id:
                raise ConflictError(f"A brand with this {field} already exists")

    def create_brand(self, data: BrandCreate) -> FlooringBrand:
        name = data.name.strip()
        if not name:
            raise ValidationError("Brand name is required")
        slug = slugify(data.slug or name)
        if not slug:
            raise ValidationError("Brand slug is empty")
        self._check_unique(name, slug)

        brand = self.brands.create(**{**data.model_dump(), "name": name, "slug": slug, "categories": data.categories or []})
        logger.info(f"[green]✅ Brand created:[/green] {brand.name}")
        return brand

    def update_brand(self, brand_id: str, data: BrandUpdate) -> FlooringBrand:
        brand = self._get(brand_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Brand name is required")
        if "slug" in changes or "name" in changes:
            changes["slug"] = slugify(changes.get("slug") or changes.get("name") or brand.name)
        self._check_unique(changes.get("name", brand.name), changes.get("slug", brand.slug), exclude_id=brand.id)
        return self.brands.update(brand, **changes)

    def delete_brand(self, brand_id: str) -> FlooringBrand:
        brand = self._get(brand_id)
        self.brands.delete(brand)
        logger.info(f"[yellow]🗑️  Brand deleted:[/yellow] {brand.name}")
        return brand
