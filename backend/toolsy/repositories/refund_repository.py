"""
Refund Repository - public refund tickets and portal refund requests

Author: TM3
Date: 2026-03-05
"""
from typing import List, Optional, Tuple
from psycopg2.extras import Json
from toolsy.domain.refund import RefundTicket
from toolsy.domain.subscription import SubscriptionRefundRequest
from toolsy.core.database import get_db_connection_dict


TICKET_COLUMNS = """
    id, ticket_id, name, email, order_id, reason, description,
    proof_files, status, admin_notes, created_at
"""

SUBSCRIPTION_REFUND_SELECT = """
    SELECT
        r.id, r.subscription_id, r.user_auth_code_id, r.reason, r.description,
        r.status, r.admin_notes, r.refund_amount, r.refund_method,
        r.processed_at, r.created_at,
        p.name as product_name, ac.user_name, ac.user_email
    FROM subscription_refund_requests r
    LEFT JOIN user_subscriptions s ON s.id = r.subscription_id
    LEFT JOIN products p ON p.id = s.product_id
    LEFT JOIN user_auth_codes ac ON ac.id = r.user_auth_code_id
"""


class RefundRepository:
    """Repository for refund tickets and subscription refund requests"""

    @staticmethod
    def _map_row_to_ticket(row: dict) -> RefundTicket:
        return RefundTicket(
            id=str(row['id']),
            ticket_id=row['ticket_id'],
            name=row['name'],
            email=row['email'],
            order_id=row['order_id'],
            reason=row['reason'],
            description=row['description'],
            proof_files=row.get('proof_files') or [],
            status=row.get('status') or 'pending',
            admin_notes=row.get('admin_notes'),
            created_at=row.get('created_at')
        )

    @staticmethod
    def _map_row_to_subscription_refund(row: dict) -> SubscriptionRefundRequest:
        return SubscriptionRefundRequest(
            id=str(row['id']),
            subscription_id=str(row['subscription_id']),
            user_auth_code_id=str(row['user_auth_code_id']),
            reason=row['reason'],
            description=row.get('description'),
            status=row['status'],
            admin_notes=row.get('admin_notes'),
            refund_amount=row.get('refund_amount'),
            refund_method=row.get('refund_method'),
            processed_at=row.get('processed_at'),
            created_at=row.get('created_at'),
            product_name=row.get('product_name'),
            user_name=row.get('user_name'),
            user_email=row.get('user_email')
        )

    # ------------------------------------------------------------------
    # Public refund tickets
    # ------------------------------------------------------------------

    def create_ticket(self, ticket: RefundTicket) -> RefundTicket:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO refund_requests (
                    ticket_id, name, email, order_id, reason, description,
                    proof_files, status
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, 'pending')
                RETURNING {TICKET_COLUMNS}
            """, (
                ticket.ticket_id, ticket.name, ticket.email, ticket.order_id,
                ticket.reason, ticket.description,
                Json([f.model_dump() for f in ticket.proof_files])
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_ticket(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_ticket(self, ticket_id: str) -> Optional[RefundTicket]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {TICKET_COLUMNS}
                FROM refund_requests
                WHERE ticket_id = %s
            """, (ticket_id,))
            row = cursor.fetchone()
            return self._map_row_to_ticket(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_tickets(
        self,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[RefundTicket], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("status = %s")
                params.append(status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM refund_requests
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {TICKET_COLUMNS}
                FROM refund_requests
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_ticket(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def update_ticket_status(
        self,
        ticket_id: str,
        status: str,
        admin_notes: Optional[str] = None
    ) -> Optional[RefundTicket]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE refund_requests
                SET status = %s, admin_notes = COALESCE(%s, admin_notes)
                WHERE ticket_id = %s
                RETURNING {TICKET_COLUMNS}
            """, (status, admin_notes, ticket_id))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_ticket(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Subscription refund requests (portal)
    # ------------------------------------------------------------------

    def create_subscription_refund(
        self,
        subscription_id: str,
        user_auth_code_id: str,
        reason: str,
        description: Optional[str]
    ) -> SubscriptionRefundRequest:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO subscription_refund_requests (
                    subscription_id, user_auth_code_id, reason, description, status
                )
                VALUES (%s, %s, %s, %s, 'pending')
                RETURNING id
            """, (subscription_id, user_auth_code_id, reason, description))
            refund_id = str(cursor.fetchone()['id'])
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_subscription_refund(refund_id)

    def find_subscription_refund(self, refund_id: str) -> Optional[SubscriptionRefundRequest]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {SUBSCRIPTION_REFUND_SELECT}
                WHERE r.id = %s
            """, (refund_id,))
            row = cursor.fetchone()
            return self._map_row_to_subscription_refund(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def has_open_subscription_refund(self, subscription_id: str) -> bool:
        """True when a pending request already exists for the subscription"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT 1
                FROM subscription_refund_requests
                WHERE subscription_id = %s AND status = 'pending'
            """, (subscription_id,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def find_subscription_refunds(
        self,
        status: Optional[str] = None,
        user_auth_code_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[SubscriptionRefundRequest], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("r.status = %s")
                params.append(status)

            if user_auth_code_id:
                conditions.append("r.user_auth_code_id = %s")
                params.append(user_auth_code_id)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM subscription_refund_requests r
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {SUBSCRIPTION_REFUND_SELECT}
                WHERE {where_clause}
                ORDER BY r.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [self._map_row_to_subscription_refund(row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def update_subscription_refund(self, refund_id: str, data: dict) -> Optional[SubscriptionRefundRequest]:
        """
        Set status and processing details

        processed_at is stamped when the status leaves pending.
        """
        columns = [c for c in ('status', 'admin_notes', 'refund_amount', 'refund_method') if c in data]
        if not columns:
            return self.find_subscription_refund(refund_id)

        set_clause = ", ".join(f"{c} = %s" for c in columns)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE subscription_refund_requests
                SET {set_clause},
                    processed_at = CASE WHEN %s <> 'pending' THEN NOW() ELSE processed_at END
                WHERE id = %s
            """, [data[c] for c in columns] + [data.get('status', 'pending'), refund_id])
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_subscription_refund(refund_id) if updated else None

    def count_pending(self) -> int:
        """Pending tickets plus pending portal requests"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    (SELECT COUNT(*) FROM refund_requests WHERE status = 'pending') +
                    (SELECT COUNT(*) FROM subscription_refund_requests WHERE status = 'pending')
                    as total
            """)
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
