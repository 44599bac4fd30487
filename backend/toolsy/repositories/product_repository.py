"""
Product Repository - Data Access Layer for the catalog

Handles products, their pricing plans, gallery images and social shares.

Author: TM3
Date: 2026-03-03
"""
from typing import List, Optional, Tuple
from toolsy.domain.product import Product, PricingPlan, ProductImage
from toolsy.core.database import get_db_connection_dict


PRODUCT_COLUMNS = """
    id, name, slug, description, detailed_description, price, original_price,
    category, rating, features, main_image_url, video_url, video_thumbnail_url,
    created_at, updated_at
"""

# Columns an admin may write; id/slug/timestamps are managed here
WRITABLE_COLUMNS = (
    'name', 'slug', 'description', 'detailed_description', 'price', 'original_price',
    'category', 'rating', 'features', 'main_image_url', 'video_url', 'video_thumbnail_url',
)


class ProductRepository:
    """
    Repository for catalog data access

    All SQL queries for products are centralized here.
    Returns domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        return Product(
            id=str(row['id']),
            name=row['name'],
            slug=row.get('slug'),
            description=row.get('description'),
            detailed_description=row.get('detailed_description'),
            price=row.get('price'),
            original_price=row.get('original_price'),
            category=row.get('category'),
            rating=float(row['rating']) if row.get('rating') is not None else None,
            features=list(row.get('features') or []),
            main_image_url=row.get('main_image_url'),
            video_url=row.get('video_url'),
            video_thumbnail_url=row.get('video_thumbnail_url'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _map_row_to_plan(row: dict) -> PricingPlan:
        return PricingPlan(
            id=str(row['id']),
            product_id=str(row['product_id']),
            plan_type=row['plan_type'],
            is_enabled=row['is_enabled'],
            price=row.get('price'),
            monthly_price=row.get('monthly_price'),
            yearly_price=row.get('yearly_price'),
            description=row.get('description')
        )

    @staticmethod
    def _map_row_to_image(row: dict) -> ProductImage:
        return ProductImage(
            id=str(row['id']),
            product_id=str(row['product_id']),
            image_url=row['image_url'],
            alt_text=row.get('alt_text'),
            display_order=row.get('display_order') or 0
        )

    def find_by_id(self, product_id: str) -> Optional[Product]:
        """
        Find product by ID, with its pricing plans

        Returns:
            Product or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            product = self._map_row_to_product(row)

            cursor.execute("""
                SELECT id, product_id, plan_type, is_enabled, price,
                       monthly_price, yearly_price, description
                FROM pricing_plans
                WHERE product_id = %s
                ORDER BY plan_type
            """, (product_id,))
            product.pricing_plans = [self._map_row_to_plan(r) for r in cursor.fetchall()]

            return product

        finally:
            cursor.close()
            conn.close()

    def find_by_slug(self, slug: str) -> Optional[Product]:
        """Find product by URL slug, with its pricing plans"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id FROM products WHERE slug = %s", (slug,))
            row = cursor.fetchone()
        finally:
            cursor.close()
            conn.close()

        if not row:
            return None
        return self.find_by_id(str(row['id']))

    def find_all(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters, newest first

        Args:
            category: Filter by category
            search: Search in name or description
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products with plans, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if category:
                conditions.append("category = %s")
                params.append(category)

            if search:
                conditions.append("(name ILIKE %s OR description ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            products = [self._map_row_to_product(row) for row in cursor.fetchall()]

            if products:
                cursor.execute("""
                    SELECT id, product_id, plan_type, is_enabled, price,
                           monthly_price, yearly_price, description
                    FROM pricing_plans
                    WHERE product_id = ANY(%s::uuid[])
                    ORDER BY plan_type
                """, ([p.id for p in products],))

                plans_by_product = {}
                for plan_row in cursor.fetchall():
                    plan = self._map_row_to_plan(plan_row)
                    plans_by_product.setdefault(plan.product_id, []).append(plan)

                for product in products:
                    product.pricing_plans = plans_by_product.get(product.id, [])

            return products, total

        finally:
            cursor.close()
            conn.close()

    def get_categories(self) -> List[str]:
        """Distinct categories, alphabetically"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT DISTINCT category
                FROM products
                WHERE category IS NOT NULL
                ORDER BY category
            """)
            return [row['category'] for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if exclude_id:
                cursor.execute(
                    "SELECT 1 FROM products WHERE slug = %s AND id <> %s",
                    (slug, exclude_id)
                )
            else:
                cursor.execute("SELECT 1 FROM products WHERE slug = %s", (slug,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: dict) -> Product:
        """
        Insert a product

        Args:
            data: Column values (must include slug)
        """
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {PRODUCT_COLUMNS}
            """, [data[c] for c in columns])

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: str, data: dict) -> Optional[Product]:
        """
        Update the given columns of a product

        Returns:
            Updated product, or None if it does not exist
        """
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        if not columns:
            return self.find_by_id(product_id)

        set_clause = ", ".join(f"{c} = %s" for c in columns)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, [data[c] for c in columns] + [product_id])

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: str) -> bool:
        """Delete a product (plans and images cascade). Returns False if missing."""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def replace_pricing_plans(self, product_id: str, plans: List[PricingPlan]) -> List[PricingPlan]:
        """Replace every pricing plan of a product in one transaction"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM pricing_plans WHERE product_id = %s", (product_id,))

            saved = []
            for plan in plans:
                cursor.execute("""
                    INSERT INTO pricing_plans (
                        product_id, plan_type, is_enabled, price,
                        monthly_price, yearly_price, description
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING id, product_id, plan_type, is_enabled, price,
                              monthly_price, yearly_price, description
                """, (
                    product_id, plan.plan_type, plan.is_enabled, plan.price,
                    plan.monthly_price, plan.yearly_price, plan.description
                ))
                saved.append(self._map_row_to_plan(cursor.fetchone()))

            conn.commit()
            return saved

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_images(self, product_id: str) -> List[ProductImage]:
        """Gallery images ordered by display_order"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, product_id, image_url, alt_text, display_order
                FROM product_images
                WHERE product_id = %s
                ORDER BY display_order ASC
            """, (product_id,))
            return [self._map_row_to_image(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def replace_images(self, product_id: str, images: List[ProductImage]) -> List[ProductImage]:
        """Replace the gallery of a product in one transaction"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM product_images WHERE product_id = %s", (product_id,))

            saved = []
            for position, image in enumerate(images):
                cursor.execute("""
                    INSERT INTO product_images (product_id, image_url, alt_text, display_order)
                    VALUES (%s, %s, %s, %s)
                    RETURNING id, product_id, image_url, alt_text, display_order
                """, (product_id, image.image_url, image.alt_text, image.display_order or position))
                saved.append(self._map_row_to_image(cursor.fetchone()))

            conn.commit()
            return saved

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def record_share(self, product_id: str, platform: str, ip_address: Optional[str]) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO social_shares (product_id, platform, ip_address)
                VALUES (%s, %s, %s)
            """, (product_id, platform, ip_address))
            conn.commit()

        finally:
            cursor.close()
            conn.close()

    def count(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) as total FROM products")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
