"""
Catalog Service
Product listing (cached), product administration and pricing tables

Purpose:
- Serve the storefront product list from a TTL cache
- Validate and sanitize admin product input
- Keep slugs in sync with product names
- Invalidate the cache on every admin write

Author: TM3
Date: 2026-03-06
"""
import logging
from typing import List, Optional, Tuple

from toolsy.core.config import settings
from toolsy.core.validation import (
    is_valid_image_url,
    validate_product_data,
    sanitize_product_data,
    sanitize_html,
    slugify,
)
from toolsy.domain.product import Product, PricingPlan, ProductImage, PLAN_TYPES
from toolsy.repositories.product_repository import ProductRepository
from toolsy.services.audit_service import AuditContext, record_admin_action
from toolsy.services.cache import TTLCache
from toolsy.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

SHARE_PLATFORMS = ('facebook', 'twitter', 'linkedin', 'whatsapp', 'telegram', 'copy_link')


class CatalogService:
    """Storefront catalog operations"""

    def __init__(self, repository: Optional[ProductRepository] = None, cache_ttl: Optional[int] = None):
        self.repository = repository or ProductRepository()
        self.pricing = PricingService()
        self._cache = TTLCache('products', cache_ttl if cache_ttl is not None else settings.CATALOG_CACHE_TTL)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load_all_products(self) -> List[Product]:
        products, total = self.repository.find_all(limit=10000, offset=0)
        logger.info(f"Loaded {len(products)} products into cache")
        return products

    def list_products(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Products newest first

        The unfiltered list comes from the cache; filtered queries go to the database.
        """
        if category or search:
            return self.repository.find_all(category=category, search=search, limit=limit, offset=offset)

        products = self._cache.get_or_load('all', self._load_all_products)
        return products[offset:offset + limit], len(products)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.repository.find_by_id(product_id)

    def get_product_by_slug(self, slug: str) -> Optional[Product]:
        return self.repository.find_by_slug(slug)

    def get_images(self, product_id: str) -> List[ProductImage]:
        return self.repository.find_images(product_id)

    def get_categories(self) -> List[str]:
        return self.repository.get_categories()

    def get_pricing_table(self, product: Product) -> List[dict]:
        return self.pricing.price_matrix(product)

    def invalidate_cache(self) -> None:
        self._cache.invalidate()

    def cache_stats(self) -> dict:
        return self._cache.stats()

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    def _ensure_unique_slug(self, slug: str, exclude_id: Optional[str] = None) -> None:
        if not slug:
            raise ValueError("Product name must contain letters or digits")
        if self.repository.slug_exists(slug, exclude_id=exclude_id):
            raise ValueError(f"A product with slug '{slug}' already exists")

    def create_product(self, data: dict, context: Optional[AuditContext] = None) -> Product:
        """
        Validate, sanitize and insert a product

        Raises:
            ValueError: validation errors (all of them, joined) or slug taken
        """
        errors = validate_product_data(data)
        if errors:
            raise ValueError("; ".join(errors))

        clean = sanitize_product_data(data)
        clean['slug'] = slugify(clean['name'])
        self._ensure_unique_slug(clean['slug'])

        product = self.repository.create(clean)
        self.invalidate_cache()

        logger.info(f"Product created: {product.name} ({product.id})")
        record_admin_action(context, 'create', 'products', product.id, new_values=clean)
        return product

    def update_product(
        self,
        product_id: str,
        updates: dict,
        context: Optional[AuditContext] = None
    ) -> Optional[Product]:
        """
        Apply a partial update

        Returns:
            Updated product; the current one when nothing changes; None if missing
        """
        current = self.repository.find_by_id(product_id)
        if not current:
            return None

        current_data = current.model_dump()
        changes = {
            key: value for key, value in updates.items()
            if key in current_data and current_data[key] != value
        }
        if not changes:
            return current

        merged = {**current_data, **changes}
        errors = validate_product_data(merged)
        if errors:
            raise ValueError("; ".join(errors))

        clean = sanitize_product_data(changes)
        if 'name' in clean:
            clean['slug'] = slugify(clean['name'])
            self._ensure_unique_slug(clean['slug'], exclude_id=product_id)

        product = self.repository.update(product_id, clean)
        self.invalidate_cache()

        logger.info(f"Product updated: {product_id} fields={sorted(clean)}")
        record_admin_action(
            context, 'update', 'products', product_id,
            new_values=clean,
            old_values={key: current_data[key] for key in changes}
        )
        return product

    def delete_product(self, product_id: str, context: Optional[AuditContext] = None) -> bool:
        deleted = self.repository.delete(product_id)
        if deleted:
            self.invalidate_cache()
            logger.info(f"Product deleted: {product_id}")
            record_admin_action(context, 'delete', 'products', product_id)
        return deleted

    def replace_pricing_plans(
        self,
        product_id: str,
        plans: List[PricingPlan],
        context: Optional[AuditContext] = None
    ) -> List[PricingPlan]:
        """One plan per type at most; descriptions are sanitized"""
        seen = set()
        for plan in plans:
            if plan.plan_type not in PLAN_TYPES:
                raise ValueError(f"Invalid plan_type '{plan.plan_type}'")
            if plan.plan_type in seen:
                raise ValueError(f"Duplicate plan_type '{plan.plan_type}'")
            seen.add(plan.plan_type)
            if plan.description:
                plan.description = sanitize_html(plan.description)

        saved = self.repository.replace_pricing_plans(product_id, plans)
        self.invalidate_cache()
        record_admin_action(
            context, 'replace_plans', 'pricing_plans', product_id,
            new_values={"plans": [p.model_dump() for p in saved]}
        )
        return saved

    def replace_images(
        self,
        product_id: str,
        images: List[ProductImage],
        context: Optional[AuditContext] = None
    ) -> List[ProductImage]:
        for image in images:
            if not is_valid_image_url(image.image_url):
                raise ValueError(f"Image URL is not valid: {image.image_url}")
            if image.alt_text:
                image.alt_text = sanitize_html(image.alt_text)

        saved = self.repository.replace_images(product_id, images)
        self.invalidate_cache()
        record_admin_action(
            context, 'replace_images', 'product_images', product_id,
            new_values={"count": len(saved)}
        )
        return saved

    def record_share(self, product_id: str, platform: str, ip_address: Optional[str]) -> None:
        if platform not in SHARE_PLATFORMS:
            raise ValueError(f"Invalid platform '{platform}'. Valid: {', '.join(SHARE_PLATFORMS)}")
        self.repository.record_share(product_id, platform, ip_address)


# Singleton instance for use across the application
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create the CatalogService singleton"""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
