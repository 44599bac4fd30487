"""
Purchase Repository - checkout writes and purchase requests

create_purchase() does the whole checkout in one transaction:
1. Reuse the auth code registered for the email, or insert a new one
2. Insert the purchase request and its items
3. Insert one pending product code per unit

Author: TM3
Date: 2026-03-04
"""
import logging
from typing import Callable, List, Optional, Tuple
from toolsy.domain.checkout import PricedItem
from toolsy.core.database import get_db_connection_dict

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


PURCHASE_REQUEST_COLUMNS = """
    id, user_auth_code_id, user_email, user_name, total_amount, currency,
    is_returning_user, status, whatsapp_message_sent, admin_notes, created_at
"""


def _unique_code(cursor, table: str, column: str, generate: Callable[[], str]) -> str:
    """Draw codes until one is unused in table.column"""
    for _ in range(MAX_CODE_ATTEMPTS):
        candidate = generate()
        cursor.execute(f"SELECT 1 FROM {table} WHERE {column} = %s", (candidate,))
        if cursor.fetchone() is None:
            return candidate
        logger.debug(f"Code collision in {table}.{column}: {candidate}")
    raise RuntimeError(f"Could not generate a unique value for {table}.{column}")


class PurchaseRepository:
    """Repository for checkout and purchase requests"""

    @staticmethod
    def _map_row_to_purchase_request(row: dict) -> dict:
        data = dict(row)
        data['id'] = str(row['id'])
        data['user_auth_code_id'] = str(row['user_auth_code_id'])
        if row.get('total_amount') is not None:
            data['total_amount'] = float(row['total_amount'])
        if row.get('created_at'):
            data['created_at'] = row['created_at'].isoformat()
        return data

    def create_purchase(
        self,
        user_name: str,
        user_email: str,
        items: List[PricedItem],
        currency: str,
        generate_user_code: Callable[[], str],
        generate_product_code: Callable[[str], str]
    ) -> dict:
        """
        Run a checkout

        Args:
            user_name: Trimmed customer name
            user_email: Trimmed, lower-cased email
            items: Lines priced by the pricing service
            currency: Currency code stored on every row
            generate_user_code: Returns a candidate 8 character auth code
            generate_product_code: Returns a candidate code for a product name

        Returns:
            Dict with purchase_request_id, user_code, is_returning_user,
            product_codes and total_amount
        """
        total_amount = round(sum(item.subtotal for item in items), 2)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, code
                FROM user_auth_codes
                WHERE user_email = %s
                FOR UPDATE
            """, (user_email,))
            existing = cursor.fetchone()

            if existing:
                is_returning_user = True
                auth_code_id = existing['id']
                user_code = existing['code']
            else:
                is_returning_user = False
                user_code = _unique_code(cursor, 'user_auth_codes', 'code', generate_user_code)
                cursor.execute("""
                    INSERT INTO user_auth_codes (code, user_name, user_email)
                    VALUES (%s, %s, %s)
                    RETURNING id
                """, (user_code, user_name, user_email))
                auth_code_id = cursor.fetchone()['id']

            cursor.execute("""
                INSERT INTO purchase_requests (
                    user_auth_code_id, user_email, user_name, total_amount,
                    currency, is_returning_user, status
                )
                VALUES (%s, %s, %s, %s, %s, %s, 'pending')
                RETURNING id
            """, (auth_code_id, user_email, user_name, total_amount, currency, is_returning_user))
            purchase_request_id = cursor.fetchone()['id']

            product_codes = []
            for item in items:
                cursor.execute("""
                    INSERT INTO purchase_request_items (
                        purchase_request_id, product_id, subscription_type,
                        subscription_period, quantity, unit_price
                    )
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (
                    purchase_request_id, item.product_id, item.subscription_type,
                    item.subscription_period, item.quantity, item.unit_price
                ))

                for _ in range(item.quantity):
                    code = _unique_code(
                        cursor, 'product_codes', 'product_code',
                        lambda: generate_product_code(item.product_name)
                    )
                    cursor.execute("""
                        INSERT INTO product_codes (
                            product_code, product_id, user_auth_code_id, purchase_request_id,
                            price, currency, subscription_type, subscription_period, status
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'pending')
                    """, (
                        code, item.product_id, auth_code_id, purchase_request_id,
                        item.unit_price, currency, item.subscription_type, item.subscription_period
                    ))
                    product_codes.append({
                        "product_code": code,
                        "product_id": item.product_id,
                        "product_name": item.product_name,
                    })

            conn.commit()

            return {
                "purchase_request_id": str(purchase_request_id),
                "user_code": user_code,
                "is_returning_user": is_returning_user,
                "product_codes": product_codes,
                "total_amount": total_amount,
            }

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[dict], int]:
        """Purchase requests, newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("status = %s")
                params.append(status)

            if search:
                conditions.append("(user_name ILIKE %s OR user_email ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM purchase_requests
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PURCHASE_REQUEST_COLUMNS}
                FROM purchase_requests
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_purchase_request(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def mark_whatsapp_sent(self, purchase_request_id: str, user_code: str) -> bool:
        """
        Flag that the customer opened the WhatsApp hand-off

        The user code must own the purchase request.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE purchase_requests pr
                SET whatsapp_message_sent = TRUE, updated_at = NOW()
                FROM user_auth_codes ac
                WHERE pr.id = %s
                  AND ac.id = pr.user_auth_code_id
                  AND ac.code = %s
            """, (purchase_request_id, user_code))
            updated = cursor.rowcount > 0
            conn.commit()
            return updated

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
