"""
Cart Repository - persists carts as JSONB documents

Author: TM3
Date: 2026-03-03
"""
from typing import Optional
from psycopg2.extras import Json
from toolsy.domain.cart import Cart
from toolsy.core.database import get_db_connection_dict


class CartRepository:
    """Repository for shopping carts"""

    @staticmethod
    def _map_row_to_cart(row: dict) -> Cart:
        return Cart(
            id=str(row['id']),
            items=row.get('items') or [],
            currency=row.get('currency') or 'NGN',
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def create(self, currency: str = 'NGN') -> Cart:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO shopping_carts (items, currency)
                VALUES (%s, %s)
                RETURNING id, items, currency, created_at, updated_at
            """, (Json([]), currency))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_cart(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, cart_id: str) -> Optional[Cart]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, items, currency, created_at, updated_at
                FROM shopping_carts
                WHERE id = %s
            """, (cart_id,))
            row = cursor.fetchone()
            return self._map_row_to_cart(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def save(self, cart: Cart) -> Cart:
        """Write the cart's items back"""
        items = [item.model_dump(mode='json') for item in cart.items]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE shopping_carts
                SET items = %s, currency = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING id, items, currency, created_at, updated_at
            """, (Json(items), cart.currency, cart.id))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_cart(row) if row else cart

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
