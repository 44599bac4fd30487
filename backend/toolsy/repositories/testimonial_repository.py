"""
Testimonial Repository - Data Access Layer for Testimonials

Author: TM3
Date: 2026-03-03
"""
from typing import List, Optional, Tuple
from toolsy.domain.testimonial import Testimonial
from toolsy.core.database import get_db_connection_dict


TESTIMONIAL_COLUMNS = """
    id, name, role, company, rating, content, type, video_url, image_url,
    product_slug, verified, date, customer_photo_url, customer_photo_path,
    testimonial_content_photo_url, testimonial_content_photo_path, created_at
"""

WRITABLE_COLUMNS = (
    'name', 'role', 'company', 'rating', 'content', 'type', 'video_url', 'image_url',
    'product_slug', 'verified', 'date', 'customer_photo_url', 'customer_photo_path',
    'testimonial_content_photo_url', 'testimonial_content_photo_path',
)


class TestimonialRepository:
    """Repository for testimonials"""

    @staticmethod
    def _map_row_to_testimonial(row: dict) -> Testimonial:
        data = {key: row.get(key) for key in WRITABLE_COLUMNS}
        data['id'] = str(row['id'])
        data['created_at'] = row.get('created_at')
        data['verified'] = bool(row.get('verified'))
        return Testimonial(**data)

    def find_all(
        self,
        product_slug: Optional[str] = None,
        verified: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Testimonial], int]:
        """
        Find testimonials, newest first

        Returns:
            Tuple of (list of testimonials, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if product_slug:
                conditions.append("product_slug = %s")
                params.append(product_slug)

            if verified is not None:
                conditions.append("verified = %s")
                params.append(verified)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM testimonials
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {TESTIMONIAL_COLUMNS}
                FROM testimonials
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            testimonials = [self._map_row_to_testimonial(row) for row in cursor.fetchall()]
            return testimonials, total

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, testimonial_id: str) -> Optional[Testimonial]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TESTIMONIAL_COLUMNS}
                FROM testimonials
                WHERE id = %s
            """, (testimonial_id,))
            row = cursor.fetchone()
            return self._map_row_to_testimonial(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: dict) -> Testimonial:
        columns = [c for c in WRITABLE_COLUMNS if data.get(c) is not None]
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO testimonials ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {TESTIMONIAL_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_testimonial(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, testimonial_id: str, data: dict) -> Optional[Testimonial]:
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        if not columns:
            return self.find_by_id(testimonial_id)

        set_clause = ", ".join(f"{c} = %s" for c in columns)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE testimonials
                SET {set_clause}
                WHERE id = %s
                RETURNING {TESTIMONIAL_COLUMNS}
            """, [data[c] for c in columns] + [testimonial_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_testimonial(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, testimonial_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM testimonials WHERE id = %s", (testimonial_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def count(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) as total FROM testimonials")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
