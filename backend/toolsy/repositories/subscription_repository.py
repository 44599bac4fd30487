"""
Subscription Repository - auth codes and user subscriptions

Author: TM3
Date: 2026-03-04
"""
from datetime import datetime
from typing import List, Optional, Tuple, Dict
from psycopg2.extras import execute_batch
from toolsy.domain.subscription import AuthCode, Subscription, SubscriptionProduct
from toolsy.core.database import get_db_connection_dict


AUTH_CODE_COLUMNS = "id, code, user_name, user_email, is_active, created_by, created_at"

SUBSCRIPTION_SELECT = """
    SELECT
        s.id, s.user_auth_code_id, s.product_id, s.product_code_id,
        s.subscription_type, s.subscription_period, s.status,
        s.start_date, s.expiry_date, s.auto_renew, s.notes, s.custom_price,
        s.username, s.password, s.currency, s.created_at, s.updated_at,
        p.name as product_name, p.slug as product_slug,
        p.description as product_description, p.main_image_url as product_image,
        p.category as product_category
    FROM user_subscriptions s
    LEFT JOIN products p ON p.id = s.product_id
"""

SUBSCRIPTION_WRITABLE = (
    'status', 'expiry_date', 'auto_renew', 'notes', 'custom_price', 'username', 'password',
)


class SubscriptionRepository:
    """Repository for auth codes and user subscriptions"""

    @staticmethod
    def _map_row_to_auth_code(row: dict) -> AuthCode:
        return AuthCode(
            id=str(row['id']),
            code=row['code'],
            user_name=row['user_name'],
            user_email=row['user_email'],
            is_active=row['is_active'],
            created_by=str(row['created_by']) if row.get('created_by') else None,
            created_at=row.get('created_at')
        )

    @staticmethod
    def _map_row_to_subscription(row: dict) -> Subscription:
        product = None
        if row.get('product_name'):
            product = SubscriptionProduct(
                id=str(row['product_id']),
                name=row['product_name'],
                slug=row.get('product_slug'),
                description=row.get('product_description'),
                main_image_url=row.get('product_image'),
                category=row.get('product_category')
            )

        return Subscription(
            id=str(row['id']),
            user_auth_code_id=str(row['user_auth_code_id']),
            product_id=str(row['product_id']),
            product_code_id=str(row['product_code_id']) if row.get('product_code_id') else None,
            subscription_type=row['subscription_type'],
            subscription_period=row['subscription_period'],
            status=row['status'],
            start_date=row['start_date'],
            expiry_date=row['expiry_date'],
            auto_renew=row.get('auto_renew') or False,
            notes=row.get('notes'),
            custom_price=row.get('custom_price'),
            username=row.get('username'),
            password=row.get('password'),
            currency=row.get('currency') or 'NGN',
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            product=product
        )

    # ------------------------------------------------------------------
    # Auth codes
    # ------------------------------------------------------------------

    def find_active_auth_code(self, code: str) -> Optional[AuthCode]:
        """Find an auth code that exists and is active"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {AUTH_CODE_COLUMNS}
                FROM user_auth_codes
                WHERE code = %s AND is_active = TRUE
            """, (code,))
            row = cursor.fetchone()
            return self._map_row_to_auth_code(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_auth_code_by_email(self, email: str) -> Optional[AuthCode]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {AUTH_CODE_COLUMNS}
                FROM user_auth_codes
                WHERE user_email = %s
            """, (email,))
            row = cursor.fetchone()
            return self._map_row_to_auth_code(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_auth_code_by_id(self, auth_code_id: str) -> Optional[AuthCode]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {AUTH_CODE_COLUMNS}
                FROM user_auth_codes
                WHERE id = %s
            """, (auth_code_id,))
            row = cursor.fetchone()
            return self._map_row_to_auth_code(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def auth_code_exists(self, code: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT 1 FROM user_auth_codes WHERE code = %s", (code,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def find_auth_codes(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[AuthCode], int]:
        """
        Find auth codes, newest first

        Args:
            search: Match on code, name or email
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if search:
                conditions.append("(code ILIKE %s OR user_name ILIKE %s OR user_email ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term, search_term])

            if is_active is not None:
                conditions.append("is_active = %s")
                params.append(is_active)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM user_auth_codes
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {AUTH_CODE_COLUMNS}
                FROM user_auth_codes
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_auth_code(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def create_auth_code(
        self,
        code: str,
        user_name: str,
        user_email: str,
        created_by: Optional[str] = None
    ) -> AuthCode:
        """
        Insert an auth code

        Raises:
            psycopg2.errors.UniqueViolation: code or email already taken
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO user_auth_codes (code, user_name, user_email, created_by)
                VALUES (%s, %s, %s, %s)
                RETURNING {AUTH_CODE_COLUMNS}
            """, (code, user_name, user_email, created_by))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_auth_code(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def set_auth_code_active(self, auth_code_id: str, is_active: bool) -> Optional[AuthCode]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE user_auth_codes
                SET is_active = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING {AUTH_CODE_COLUMNS}
            """, (is_active, auth_code_id))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_auth_code(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def find_by_auth_code(self, auth_code_id: str) -> List[Subscription]:
        """Subscriptions of one customer, soonest expiry first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {SUBSCRIPTION_SELECT}
                WHERE s.user_auth_code_id = %s
                ORDER BY s.expiry_date ASC
            """, (auth_code_id,))
            return [self._map_row_to_subscription(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, subscription_id: str) -> Optional[Subscription]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {SUBSCRIPTION_SELECT}
                WHERE s.id = %s
            """, (subscription_id,))
            row = cursor.fetchone()
            return self._map_row_to_subscription(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        user_auth_code_id: Optional[str] = None,
        product_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Subscription], int]:
        """
        Find subscriptions with filters, soonest expiry first

        Returns:
            Tuple of (list of subscriptions, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("s.status = %s")
                params.append(status)

            if user_auth_code_id:
                conditions.append("s.user_auth_code_id = %s")
                params.append(user_auth_code_id)

            if product_id:
                conditions.append("s.product_id = %s")
                params.append(product_id)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM user_subscriptions s
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {SUBSCRIPTION_SELECT}
                WHERE {where_clause}
                ORDER BY s.expiry_date ASC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_subscription(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def create(self, data: dict) -> Subscription:
        """
        Insert a subscription

        Args:
            data: Column values, including start_date and expiry_date
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO user_subscriptions (
                    user_auth_code_id, product_id, product_code_id,
                    subscription_type, subscription_period, status,
                    start_date, expiry_date, auto_renew, notes,
                    custom_price, username, password, currency
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                data['user_auth_code_id'],
                data['product_id'],
                data.get('product_code_id'),
                data['subscription_type'],
                data['subscription_period'],
                data.get('status', 'active'),
                data['start_date'],
                data['expiry_date'],
                data.get('auto_renew', False),
                data.get('notes'),
                data.get('custom_price'),
                data.get('username'),
                data.get('password'),
                data.get('currency', 'NGN'),
            ))
            subscription_id = str(cursor.fetchone()['id'])
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(subscription_id)

    def update(self, subscription_id: str, data: dict) -> Optional[Subscription]:
        columns = [c for c in SUBSCRIPTION_WRITABLE if c in data]
        if not columns:
            return self.find_by_id(subscription_id)

        set_clause = ", ".join(f"{c} = %s" for c in columns)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE user_subscriptions
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
            """, [data[c] for c in columns] + [subscription_id])
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(subscription_id) if updated else None

    def find_status_candidates(self) -> List[dict]:
        """Every subscription whose status may change (i.e. not cancelled)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, status, expiry_date
                FROM user_subscriptions
                WHERE status <> 'cancelled'
            """)
            return list(cursor.fetchall())

        finally:
            cursor.close()
            conn.close()

    def bulk_update_statuses(self, changes: List[Tuple[str, str]]) -> int:
        """
        Apply (subscription_id, new_status) pairs in one transaction

        Returns:
            Number of pairs applied
        """
        if not changes:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            execute_batch(cursor, """
                UPDATE user_subscriptions
                SET status = %s, updated_at = NOW()
                WHERE id = %s AND status <> 'cancelled'
            """, [(status, subscription_id) for subscription_id, status in changes])
            conn.commit()
            return len(changes)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def get_status_counts(self) -> Dict[str, int]:
        """Number of subscriptions per status"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT status, COUNT(*) as total
                FROM user_subscriptions
                GROUP BY status
            """)
            return {row['status']: row['total'] for row in cursor.fetchall()}

        finally:
            cursor.close()
            conn.close()

    def find_expiring_between(self, start: datetime, end: datetime) -> List[Subscription]:
        """Non-cancelled subscriptions expiring in [start, end]"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {SUBSCRIPTION_SELECT}
                WHERE s.status <> 'cancelled'
                  AND s.expiry_date BETWEEN %s AND %s
                ORDER BY s.expiry_date ASC
            """, (start, end))
            return [self._map_row_to_subscription(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
