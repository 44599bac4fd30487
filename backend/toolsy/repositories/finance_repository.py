"""
Finance Repository - payments, vendors, adjustments and sales analytics

Author: TM3
Date: 2026-03-05
"""
from datetime import date, datetime
from typing import List, Optional, Tuple
from psycopg2.extras import Json
from toolsy.domain.finance import (
    IncomingPayment,
    VendorProfile,
    VendorTransaction,
    FinancialAdjustment,
)
from toolsy.core.database import get_db_connection_dict


PAYMENT_COLUMNS = """
    id, customer_name, customer_email, amount, currency, payment_method,
    payment_status, payment_proof_url, transaction_id, product_id,
    subscription_id, user_auth_code_id, verified_by, admin_notes,
    payment_date, created_at
"""

VENDOR_COLUMNS = """
    id, vendor_name, contact_person, email, phone, payment_method,
    account_details, products_supplied, total_due, total_paid,
    next_payment_date, is_active, notes, created_at
"""

VENDOR_TRANSACTION_COLUMNS = """
    id, vendor_id, vendor_name, amount, currency, transaction_type,
    payment_status, due_date, payment_date, description, product_id, created_at
"""

ADJUSTMENT_COLUMNS = """
    id, adjustment_type, amount, currency, reason, reference_id,
    reference_table, created_by, created_at
"""

# Buckets accepted by date_trunc for the sales analytics grouping
GROUP_BY_PERIODS = ('day', 'week', 'month', 'year')


def _stringify_ids(row: dict, fields) -> dict:
    data = dict(row)
    for field in fields:
        if data.get(field) is not None:
            data[field] = str(data[field])
    return data


class FinanceRepository:
    """Repository for finance tables"""

    # ------------------------------------------------------------------
    # Incoming payments
    # ------------------------------------------------------------------

    def find_payments(
        self,
        payment_status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[IncomingPayment], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if payment_status:
                conditions.append("payment_status = %s")
                params.append(payment_status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM incoming_payments
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PAYMENT_COLUMNS}
                FROM incoming_payments
                WHERE {where_clause}
                ORDER BY payment_date DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            ids = ('id', 'product_id', 'subscription_id', 'user_auth_code_id', 'verified_by')
            payments = [IncomingPayment(**_stringify_ids(row, ids)) for row in cursor.fetchall()]
            return payments, total

        finally:
            cursor.close()
            conn.close()

    def create_payment(self, data: dict) -> IncomingPayment:
        columns = [c for c, v in data.items() if v is not None]
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO incoming_payments ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {PAYMENT_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            ids = ('id', 'product_id', 'subscription_id', 'user_auth_code_id', 'verified_by')
            return IncomingPayment(**_stringify_ids(row, ids))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_payment_status(
        self,
        payment_id: str,
        payment_status: str,
        verified_by: Optional[str] = None,
        admin_notes: Optional[str] = None
    ) -> Optional[IncomingPayment]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE incoming_payments
                SET payment_status = %s,
                    verified_by = COALESCE(%s, verified_by),
                    admin_notes = COALESCE(%s, admin_notes)
                WHERE id = %s
                RETURNING {PAYMENT_COLUMNS}
            """, (payment_status, verified_by, admin_notes, payment_id))
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            ids = ('id', 'product_id', 'subscription_id', 'user_auth_code_id', 'verified_by')
            return IncomingPayment(**_stringify_ids(row, ids))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    def find_vendors(self, is_active: Optional[bool] = None) -> List[VendorProfile]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if is_active is None:
                cursor.execute(f"""
                    SELECT {VENDOR_COLUMNS}
                    FROM vendor_profiles
                    ORDER BY vendor_name
                """)
            else:
                cursor.execute(f"""
                    SELECT {VENDOR_COLUMNS}
                    FROM vendor_profiles
                    WHERE is_active = %s
                    ORDER BY vendor_name
                """, (is_active,))

            vendors = []
            for row in cursor.fetchall():
                data = _stringify_ids(row, ('id',))
                data['products_supplied'] = list(row.get('products_supplied') or [])
                vendors.append(VendorProfile(**data))
            return vendors

        finally:
            cursor.close()
            conn.close()

    def create_vendor(self, data: dict) -> VendorProfile:
        data = dict(data)
        if data.get('account_details') is not None:
            data['account_details'] = Json(data['account_details'])
        columns = [c for c, v in data.items() if v is not None]
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO vendor_profiles ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {VENDOR_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            result = _stringify_ids(row, ('id',))
            result['products_supplied'] = list(row.get('products_supplied') or [])
            return VendorProfile(**result)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_vendor_transactions(
        self,
        vendor_id: Optional[str] = None,
        payment_status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[VendorTransaction], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if vendor_id:
                conditions.append("vendor_id = %s")
                params.append(vendor_id)

            if payment_status:
                conditions.append("payment_status = %s")
                params.append(payment_status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM vendor_transactions
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {VENDOR_TRANSACTION_COLUMNS}
                FROM vendor_transactions
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            ids = ('id', 'vendor_id', 'product_id')
            return [VendorTransaction(**_stringify_ids(row, ids)) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def create_vendor_transaction(self, data: dict) -> VendorTransaction:
        """
        Record an amount owed to a vendor

        The vendor's total_due grows by the amount.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE vendor_profiles
                SET total_due = total_due + %s
                WHERE id = %s
                RETURNING vendor_name
            """, (data['amount'], data['vendor_id']))
            vendor = cursor.fetchone()
            if not vendor:
                raise LookupError(f"Vendor {data['vendor_id']} not found")

            data = dict(data)
            data['vendor_name'] = vendor['vendor_name']
            columns = [c for c, v in data.items() if v is not None]
            placeholders = ", ".join(["%s"] * len(columns))

            cursor.execute(f"""
                INSERT INTO vendor_transactions ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {VENDOR_TRANSACTION_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            return VendorTransaction(**_stringify_ids(row, ('id', 'vendor_id', 'product_id')))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def mark_vendor_transaction_paid(self, transaction_id: str) -> Optional[VendorTransaction]:
        """
        Mark a pending transaction as paid

        Moves the amount from the vendor's total_due to total_paid.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE vendor_transactions
                SET payment_status = 'paid', payment_date = NOW()
                WHERE id = %s AND payment_status = 'pending'
                RETURNING {VENDOR_TRANSACTION_COLUMNS}
            """, (transaction_id,))
            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None

            cursor.execute("""
                UPDATE vendor_profiles
                SET total_due = GREATEST(total_due - %s, 0),
                    total_paid = total_paid + %s
                WHERE id = %s
            """, (row['amount'], row['amount'], row['vendor_id']))

            conn.commit()
            return VendorTransaction(**_stringify_ids(row, ('id', 'vendor_id', 'product_id')))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    def find_adjustments(
        self,
        adjustment_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[FinancialAdjustment], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if adjustment_type:
                conditions.append("adjustment_type = %s")
                params.append(adjustment_type)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM financial_adjustments
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ADJUSTMENT_COLUMNS}
                FROM financial_adjustments
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            ids = ('id', 'reference_id', 'created_by')
            return [FinancialAdjustment(**_stringify_ids(row, ids)) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def create_adjustment(self, data: dict) -> FinancialAdjustment:
        columns = [c for c, v in data.items() if v is not None]
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO financial_adjustments ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {ADJUSTMENT_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            return FinancialAdjustment(**_stringify_ids(row, ('id', 'reference_id', 'created_by')))

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_summary_totals(self, start: datetime, end: datetime) -> dict:
        """
        Raw totals for the finance summary over [start, end]

        Returns:
            Dict with income, expenses, refunds, pending_payments, pending_vendor
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COALESCE(SUM(amount) FILTER (WHERE payment_status = 'confirmed'), 0) as income,
                    COALESCE(SUM(amount) FILTER (WHERE payment_status = 'pending'), 0) as pending_payments
                FROM incoming_payments
                WHERE payment_date BETWEEN %s AND %s
            """, (start, end))
            payments = cursor.fetchone()

            cursor.execute("""
                SELECT
                    COALESCE(SUM(amount) FILTER (WHERE payment_status = 'paid'), 0) as expenses,
                    COALESCE(SUM(amount) FILTER (WHERE payment_status = 'pending'), 0) as pending_vendor
                FROM vendor_transactions
                WHERE created_at BETWEEN %s AND %s
            """, (start, end))
            vendors = cursor.fetchone()

            cursor.execute("""
                SELECT COALESCE(SUM(amount), 0) as refunds
                FROM financial_adjustments
                WHERE adjustment_type = 'refund'
                  AND created_at BETWEEN %s AND %s
            """, (start, end))
            refunds = cursor.fetchone()

            return {
                "income": payments['income'],
                "pending_payments": payments['pending_payments'],
                "expenses": vendors['expenses'],
                "pending_vendor": vendors['pending_vendor'],
                "refunds": refunds['refunds'],
            }

        finally:
            cursor.close()
            conn.close()

    def get_sales_by_period(self, start: date, end: date, group_by: str = 'day') -> List[dict]:
        """
        Subscriptions sold per period

        Revenue is the subscription's custom_price (the price paid at checkout).
        """
        if group_by not in GROUP_BY_PERIODS:
            raise ValueError(f"group_by must be one of {', '.join(GROUP_BY_PERIODS)}")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT
                    DATE_TRUNC('{group_by}', s.start_date)::date as period,
                    COUNT(*) as total_subscriptions,
                    COALESCE(SUM(s.custom_price), 0) as total_revenue,
                    COUNT(*) FILTER (WHERE s.status IN ('active', 'expiring_soon')) as active_subscriptions,
                    COUNT(*) FILTER (WHERE s.status = 'expired') as expired_subscriptions,
                    COUNT(r.id) as total_refunds
                FROM user_subscriptions s
                LEFT JOIN subscription_refund_requests r
                    ON r.subscription_id = s.id AND r.status IN ('approved', 'processed')
                WHERE s.start_date::date BETWEEN %s AND %s
                GROUP BY 1
                ORDER BY 1
            """, (start, end))

            return [
                {
                    "period": row['period'].isoformat(),
                    "total_subscriptions": row['total_subscriptions'],
                    "total_revenue": float(row['total_revenue']),
                    "active_subscriptions": row['active_subscriptions'],
                    "expired_subscriptions": row['expired_subscriptions'],
                    "total_refunds": row['total_refunds'],
                }
                for row in cursor.fetchall()
            ]

        finally:
            cursor.close()
            conn.close()

    def get_sales_by_product(self, start: date, end: date) -> List[dict]:
        """Subscriptions sold per product, best sellers first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    p.id as product_id,
                    p.name as product_name,
                    COUNT(s.id) as total_subscriptions,
                    COALESCE(SUM(s.custom_price), 0) as total_revenue,
                    COUNT(s.id) FILTER (WHERE s.status IN ('active', 'expiring_soon')) as active_subscriptions,
                    COUNT(s.id) FILTER (WHERE s.status = 'expired') as expired_subscriptions
                FROM user_subscriptions s
                JOIN products p ON p.id = s.product_id
                WHERE s.start_date::date BETWEEN %s AND %s
                GROUP BY p.id, p.name
                ORDER BY total_revenue DESC
            """, (start, end))

            return [
                {
                    "product_id": str(row['product_id']),
                    "product_name": row['product_name'],
                    "total_subscriptions": row['total_subscriptions'],
                    "total_revenue": float(row['total_revenue']),
                    "active_subscriptions": row['active_subscriptions'],
                    "expired_subscriptions": row['expired_subscriptions'],
                }
                for row in cursor.fetchall()
            ]

        finally:
            cursor.close()
            conn.close()
