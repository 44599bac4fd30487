"""
Product Code Repository - per-unit purchase codes and their approval

Approval is the only place a subscription is created from a purchase, so it
runs as one transaction: lock the code, check it is still pending, insert
the subscription, stamp the code.

Author: TM3
Date: 2026-03-04
"""
from datetime import datetime
from typing import List, Optional, Tuple
from toolsy.domain.subscription import ProductCode
from toolsy.core.database import get_db_connection_dict


PRODUCT_CODE_SELECT = """
    SELECT
        pc.id, pc.product_code, pc.product_id, pc.user_auth_code_id,
        pc.purchase_request_id, pc.price, pc.currency,
        pc.subscription_type, pc.subscription_period, pc.status,
        pc.admin_notes, pc.approved_at, pc.approved_by, pc.rejected_at,
        pc.expires_at, pc.created_at,
        p.name as product_name,
        ac.user_name, ac.user_email, ac.code as user_code
    FROM product_codes pc
    LEFT JOIN products p ON p.id = pc.product_id
    LEFT JOIN user_auth_codes ac ON ac.id = pc.user_auth_code_id
"""


class ProductCodeRepository:
    """Repository for product codes"""

    @staticmethod
    def _map_row_to_product_code(row: dict) -> ProductCode:
        return ProductCode(
            id=str(row['id']),
            product_code=row['product_code'],
            product_id=str(row['product_id']),
            user_auth_code_id=str(row['user_auth_code_id']),
            purchase_request_id=str(row['purchase_request_id']) if row.get('purchase_request_id') else None,
            price=row.get('price'),
            currency=row.get('currency') or 'NGN',
            subscription_type=row.get('subscription_type') or 'shared',
            subscription_period=row.get('subscription_period') or '1_month',
            status=row['status'],
            admin_notes=row.get('admin_notes'),
            approved_at=row.get('approved_at'),
            approved_by=str(row['approved_by']) if row.get('approved_by') else None,
            rejected_at=row.get('rejected_at'),
            expires_at=row.get('expires_at'),
            created_at=row.get('created_at'),
            product_name=row.get('product_name'),
            user_name=row.get('user_name'),
            user_email=row.get('user_email'),
            user_code=row.get('user_code')
        )

    def find_by_id(self, product_code_id: str) -> Optional[ProductCode]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {PRODUCT_CODE_SELECT}
                WHERE pc.id = %s
            """, (product_code_id,))
            row = cursor.fetchone()
            return self._map_row_to_product_code(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        user_auth_code_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[ProductCode], int]:
        """
        Find product codes, newest first

        Args:
            status: pending, approved or rejected
            search: Match on product name, product code, user name, email or user code
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("pc.status = %s")
                params.append(status)

            if user_auth_code_id:
                conditions.append("pc.user_auth_code_id = %s")
                params.append(user_auth_code_id)

            if search:
                conditions.append("""(
                    p.name ILIKE %s OR pc.product_code ILIKE %s OR ac.user_name ILIKE %s
                    OR ac.user_email ILIKE %s OR ac.code ILIKE %s
                )""")
                search_term = f"%{search}%"
                params.extend([search_term] * 5)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM product_codes pc
                LEFT JOIN products p ON p.id = pc.product_id
                LEFT JOIN user_auth_codes ac ON ac.id = pc.user_auth_code_id
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {PRODUCT_CODE_SELECT}
                WHERE {where_clause}
                ORDER BY pc.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_product_code(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def approve(
        self,
        product_code_id: str,
        admin_id: Optional[str],
        admin_notes: Optional[str],
        start_date: datetime,
        expiry_date: datetime,
        status: str = 'active'
    ) -> dict:
        """
        Approve a pending code and create its subscription with `status`

        Returns:
            {"product_code": ..., "subscription_id": ...}

        Raises:
            LookupError: code does not exist
            ValueError: code is not pending
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, product_code, product_id, user_auth_code_id, price,
                       currency, subscription_type, subscription_period, status
                FROM product_codes
                WHERE id = %s
                FOR UPDATE
            """, (product_code_id,))
            code = cursor.fetchone()

            if not code:
                raise LookupError(f"Product code {product_code_id} not found")
            if code['status'] != 'pending':
                raise ValueError(f"Product code {code['product_code']} is already {code['status']}")

            cursor.execute("""
                INSERT INTO user_subscriptions (
                    user_auth_code_id, product_id, product_code_id,
                    subscription_type, subscription_period, status,
                    start_date, expiry_date, custom_price, currency, notes
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                code['user_auth_code_id'],
                code['product_id'],
                code['id'],
                code['subscription_type'],
                code['subscription_period'],
                status,
                start_date,
                expiry_date,
                code['price'],
                code['currency'],
                admin_notes,
            ))
            subscription_id = str(cursor.fetchone()['id'])

            cursor.execute("""
                UPDATE product_codes
                SET status = 'approved', approved_at = NOW(), approved_by = %s,
                    admin_notes = %s, expires_at = %s
                WHERE id = %s
            """, (admin_id, admin_notes, expiry_date, product_code_id))

            conn.commit()
            return {"product_code": code['product_code'], "subscription_id": subscription_id}

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def reject(self, product_code_id: str, admin_notes: Optional[str]) -> dict:
        """
        Reject a pending code

        Raises:
            LookupError: code does not exist
            ValueError: code is not pending
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, product_code, status
                FROM product_codes
                WHERE id = %s
                FOR UPDATE
            """, (product_code_id,))
            code = cursor.fetchone()

            if not code:
                raise LookupError(f"Product code {product_code_id} not found")
            if code['status'] != 'pending':
                raise ValueError(f"Product code {code['product_code']} is already {code['status']}")

            cursor.execute("""
                UPDATE product_codes
                SET status = 'rejected', rejected_at = NOW(), admin_notes = %s
                WHERE id = %s
            """, (admin_notes, product_code_id))

            conn.commit()
            return {"product_code": code['product_code']}

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, product_code_id: str) -> Optional[str]:
        """
        Delete a code (its subscription keeps existing, unlinked)

        Returns:
            The deleted product code string, or None if missing
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM product_codes
                WHERE id = %s
                RETURNING product_code
            """, (product_code_id,))
            row = cursor.fetchone()
            conn.commit()
            return row['product_code'] if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete_by_user_email(self, user_email: str) -> int:
        """Delete every code and purchase request of a customer; returns codes deleted"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM product_codes
                WHERE user_auth_code_id IN (
                    SELECT id FROM user_auth_codes WHERE user_email = %s
                )
            """, (user_email,))
            deleted = cursor.rowcount

            cursor.execute("""
                DELETE FROM purchase_requests
                WHERE user_email = %s
            """, (user_email,))

            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def cancel_subscription(self, product_code_id: str) -> Optional[str]:
        """
        Cancel the subscription created from a code

        Returns:
            The cancelled subscription id, or None if the code has none
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE user_subscriptions
                SET status = 'cancelled', updated_at = NOW()
                WHERE product_code_id = %s AND status <> 'cancelled'
                RETURNING id
            """, (product_code_id,))
            row = cursor.fetchone()
            conn.commit()
            return str(row['id']) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def count_by_status(self, status: str) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT COUNT(*) as total FROM product_codes WHERE status = %s",
                (status,)
            )
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
