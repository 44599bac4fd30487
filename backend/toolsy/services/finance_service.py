"""
Finance Service
Payments, vendor payables, adjustments, summaries and sales analytics

Author: TM3
Date: 2026-03-08
"""
import logging
from datetime import date, datetime, time, timezone
from typing import Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta

from toolsy.domain.finance import (
    FinancialAdjustment,
    FinancialSummary,
    IncomingPayment,
    VendorProfile,
    VendorTransaction,
    PAYMENT_STATUSES,
    PAYMENT_METHODS,
    ADJUSTMENT_TYPES,
)
from toolsy.repositories.finance_repository import FinanceRepository
from toolsy.repositories.product_code_repository import ProductCodeRepository
from toolsy.repositories.product_repository import ProductRepository
from toolsy.repositories.refund_repository import RefundRepository
from toolsy.repositories.subscription_repository import SubscriptionRepository
from toolsy.repositories.testimonial_repository import TestimonialRepository
from toolsy.services.audit_service import AuditContext, record_admin_action

logger = logging.getLogger(__name__)

RANGE_PRESETS = {
    '7d': relativedelta(days=7),
    '30d': relativedelta(days=30),
    '90d': relativedelta(days=90),
    '1y': relativedelta(years=1),
}
DEFAULT_RANGE = '30d'

# Accepts both the dashboard's labels and the SQL truncation units
GROUP_BY_ALIASES = {
    'daily': 'day', 'day': 'day',
    'weekly': 'week', 'week': 'week',
    'monthly': 'month', 'month': 'month',
    'yearly': 'year', 'year': 'year',
}


def resolve_date_range(
    range_key: str = DEFAULT_RANGE,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None
) -> Tuple[date, date]:
    """
    (start, end) dates for a preset or a custom range

    'custom' without both dates falls back to the last 30 days.
    """
    today = today or date.today()

    if range_key == 'custom':
        if start and end:
            if start > end:
                raise ValueError("start_date must be on or before end_date")
            return start, end
        return today - RANGE_PRESETS[DEFAULT_RANGE], today

    if range_key not in RANGE_PRESETS:
        raise ValueError(f"Invalid range '{range_key}'. Valid: {', '.join(RANGE_PRESETS)}, custom")
    return today - RANGE_PRESETS[range_key], today


def _day_bounds(start: date, end: date) -> Tuple[datetime, datetime]:
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


class FinanceService:

    def __init__(self, repository: Optional[FinanceRepository] = None):
        self.repository = repository or FinanceRepository()

    # ------------------------------------------------------------------
    # Incoming payments
    # ------------------------------------------------------------------

    def record_payment(self, data: dict, context: Optional[AuditContext] = None) -> IncomingPayment:
        if data.get('payment_method') not in PAYMENT_METHODS:
            raise ValueError(f"Invalid payment_method. Valid: {', '.join(PAYMENT_METHODS)}")

        payment = self.repository.create_payment(data)
        logger.info(f"Payment recorded: {payment.id} {payment.amount} {payment.currency}")
        record_admin_action(context, 'create', 'incoming_payments', payment.id,
                            new_values={k: str(v) for k, v in data.items()})
        return payment

    def update_payment_status(
        self,
        payment_id: str,
        payment_status: str,
        admin_notes: Optional[str] = None,
        context: Optional[AuditContext] = None
    ) -> Optional[IncomingPayment]:
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"Invalid payment_status. Valid: {', '.join(PAYMENT_STATUSES)}")

        payment = self.repository.update_payment_status(
            payment_id, payment_status,
            verified_by=context.user_id if context else None,
            admin_notes=admin_notes
        )
        if payment:
            record_admin_action(context, 'update', 'incoming_payments', payment_id,
                                new_values={'payment_status': payment_status, 'admin_notes': admin_notes})
        return payment

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    def create_vendor(self, data: dict, context: Optional[AuditContext] = None) -> VendorProfile:
        vendor = self.repository.create_vendor(data)
        logger.info(f"Vendor created: {vendor.vendor_name}")
        record_admin_action(context, 'create', 'vendor_profiles', vendor.id,
                            new_values={'vendor_name': vendor.vendor_name})
        return vendor

    def record_vendor_transaction(self, data: dict, context: Optional[AuditContext] = None) -> VendorTransaction:
        transaction = self.repository.create_vendor_transaction(data)
        record_admin_action(context, 'create', 'vendor_transactions', transaction.id,
                            new_values={k: str(v) for k, v in data.items()})
        return transaction

    def mark_vendor_transaction_paid(
        self,
        transaction_id: str,
        context: Optional[AuditContext] = None
    ) -> Optional[VendorTransaction]:
        transaction = self.repository.mark_vendor_transaction_paid(transaction_id)
        if transaction:
            logger.info(f"Vendor transaction paid: {transaction_id} ({transaction.amount})")
            record_admin_action(context, 'update', 'vendor_transactions', transaction_id,
                                new_values={'payment_status': 'paid'})
        return transaction

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    def record_adjustment(self, data: dict, context: Optional[AuditContext] = None) -> FinancialAdjustment:
        if data.get('adjustment_type') not in ADJUSTMENT_TYPES:
            raise ValueError(f"Invalid adjustment_type. Valid: {', '.join(ADJUSTMENT_TYPES)}")

        values = dict(data)
        values['created_by'] = context.user_id if context else None
        adjustment = self.repository.create_adjustment(values)
        record_admin_action(context, 'create', 'financial_adjustments', adjustment.id,
                            new_values={k: str(v) for k, v in data.items()})
        return adjustment

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def get_summary(self, start: date, end: date) -> FinancialSummary:
        if start > end:
            raise ValueError("start_date must be on or before end_date")

        totals = self.repository.get_summary_totals(*_day_bounds(start, end))
        return FinancialSummary.from_totals(
            income=totals['income'],
            expenses=totals['expenses'],
            refunds=totals['refunds'],
            pending_payments=totals['pending_payments'],
            pending_vendor=totals['pending_vendor'],
            start_date=start.isoformat(),
            end_date=end.isoformat(),
        )

    def get_sales_analytics(
        self,
        range_key: str = DEFAULT_RANGE,
        group_by: str = 'daily',
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> dict:
        """Sales per period and per product, with totals, for a range"""
        if group_by not in GROUP_BY_ALIASES:
            raise ValueError(f"Invalid group_by '{group_by}'")

        start, end = resolve_date_range(range_key, start, end)
        by_period = self.repository.get_sales_by_period(start, end, GROUP_BY_ALIASES[group_by])
        by_product = self.repository.get_sales_by_product(start, end)

        totals = {
            "total_subscriptions": sum(row['total_subscriptions'] for row in by_period),
            "total_revenue": round(sum(row['total_revenue'] for row in by_period), 2),
            "active_subscriptions": sum(row['active_subscriptions'] for row in by_period),
            "total_refunds": sum(row['total_refunds'] for row in by_period),
        }
        totals["average_order_value"] = (
            round(totals["total_revenue"] / totals["total_subscriptions"], 2)
            if totals["total_subscriptions"] else 0
        )

        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "group_by": GROUP_BY_ALIASES[group_by],
            "totals": totals,
            "by_period": by_period,
            "by_product": by_product,
        }


def get_dashboard_stats() -> Dict[str, int]:
    """Counters for the admin dashboard header"""
    subscription_counts = SubscriptionRepository().get_status_counts()
    return {
        "total_products": ProductRepository().count(),
        "total_testimonials": TestimonialRepository().count(),
        "pending_product_codes": ProductCodeRepository().count_by_status('pending'),
        "active_subscriptions": subscription_counts.get('active', 0) + subscription_counts.get('expiring_soon', 0),
        "pending_refunds": RefundRepository().count_pending(),
    }


def get_finance_service() -> FinanceService:
    return FinanceService()
