"""
Subscription Service
Auth codes, product code approval, subscription lifecycle and portal refunds

Purpose:
- Compute expiry dates from start date and period
- Keep subscription statuses current (active / expiring_soon / expired)
- Admin processing of product codes issued at checkout
- Portal sign-in with an auth code and portal refund requests

Author: TM3
Date: 2026-03-07
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from psycopg2 import errors as pg_errors

from toolsy.core.config import settings
from toolsy.core.validation import is_valid_email
from toolsy.domain.subscription import (
    AuthCode,
    ProductCode,
    Receipt,
    ReceiptLine,
    Subscription,
    SubscriptionRefundRequest,
    SUBSCRIPTION_PERIODS,
    SUBSCRIPTION_STATUSES,
    SUBSCRIPTION_TYPES,
    REFUND_STATUSES,
)
from toolsy.repositories.finance_repository import FinanceRepository
from toolsy.repositories.product_code_repository import ProductCodeRepository
from toolsy.repositories.product_repository import ProductRepository
from toolsy.repositories.refund_repository import RefundRepository
from toolsy.repositories.subscription_repository import SubscriptionRepository
from toolsy.services.audit_service import AuditContext, record_admin_action
from toolsy.services.checkout_service import generate_user_code
from toolsy.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

PERIOD_DELTAS = {
    '1_month': relativedelta(months=1),
    '3_months': relativedelta(months=3),
    '6_months': relativedelta(months=6),
    '1_year': relativedelta(years=1),
    '2_years': relativedelta(years=2),
    'lifetime': relativedelta(years=100),
}


def calculate_expiry(start_date: datetime, subscription_period: str) -> datetime:
    """start_date plus the period; unknown periods count as one month"""
    return start_date + PERIOD_DELTAS.get(subscription_period, relativedelta(months=1))


def classify_status(
    current_status: str,
    expiry_date: datetime,
    now: Optional[datetime] = None,
    expiring_soon_days: Optional[int] = None
) -> str:
    """
    Status a subscription should have at `now`

    cancelled never changes. Past expiry is expired; expiry within
    expiring_soon_days is expiring_soon; anything later is active.
    """
    if current_status == 'cancelled':
        return 'cancelled'

    now = now or datetime.now(timezone.utc)
    if expiry_date.tzinfo is None and now.tzinfo is not None:
        expiry_date = expiry_date.replace(tzinfo=timezone.utc)

    days = settings.EXPIRING_SOON_DAYS if expiring_soon_days is None else expiring_soon_days

    if expiry_date < now:
        return 'expired'
    if expiry_date <= now + timedelta(days=days):
        return 'expiring_soon'
    return 'active'


class DuplicateAuthCodeError(ValueError):
    """The email or code already has an auth code"""


def _validate_plan(subscription_type: str, subscription_period: str) -> None:
    if subscription_type not in SUBSCRIPTION_TYPES:
        raise ValueError(f"Invalid subscription_type '{subscription_type}'")
    if subscription_period not in SUBSCRIPTION_PERIODS:
        raise ValueError(f"Invalid subscription_period '{subscription_period}'")


RECEIPT_STATUS_LABELS = {
    'active': 'PAID',
    'expiring_soon': 'EXPIRING SOON',
    'expired': 'EXPIRED',
    'cancelled': 'CANCELLED',
}


def generate_receipt_number() -> str:
    """RCP-<4 random digits>"""
    return f"RCP-{secrets.randbelow(10000):04d}"


def plan_label(subscription_type: str, subscription_period: str) -> str:
    """('semi_private', '3_months') -> 'SEMI PRIVATE - 3 Months'"""
    period = ' '.join(word[:1].upper() + word[1:] for word in subscription_period.split('_'))
    return f"{subscription_type.replace('_', ' ').upper()} - {period}"


class SubscriptionService:

    def __init__(
        self,
        subscription_repository: Optional[SubscriptionRepository] = None,
        product_code_repository: Optional[ProductCodeRepository] = None,
        refund_repository: Optional[RefundRepository] = None,
        finance_repository: Optional[FinanceRepository] = None,
        product_repository: Optional[ProductRepository] = None
    ):
        self.subscriptions = subscription_repository or SubscriptionRepository()
        self.product_codes = product_code_repository or ProductCodeRepository()
        self.refunds = refund_repository or RefundRepository()
        self.finance = finance_repository or FinanceRepository()
        self.products = product_repository or ProductRepository()
        self.pricing = PricingService()

    # ------------------------------------------------------------------
    # Status maintenance
    # ------------------------------------------------------------------

    def refresh_statuses(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Reclassify every non-cancelled subscription

        Returns:
            Counts of active, expiring_soon and expired after the refresh,
            plus how many rows changed
        """
        now = now or datetime.now(timezone.utc)
        counts = {'active': 0, 'expiring_soon': 0, 'expired': 0, 'updated': 0}
        changes: List[Tuple[str, str]] = []

        for row in self.subscriptions.find_status_candidates():
            new_status = classify_status(row['status'], row['expiry_date'], now=now)
            counts[new_status] += 1
            if new_status != row['status']:
                changes.append((str(row['id']), new_status))

        counts['updated'] = self.subscriptions.bulk_update_statuses(changes)
        logger.info(
            f"Subscription statuses refreshed: {counts['updated']} updated "
            f"(active={counts['active']}, expiring_soon={counts['expiring_soon']}, "
            f"expired={counts['expired']})"
        )
        return counts

    def expiry_stats(self) -> Dict[str, int]:
        counts = self.subscriptions.get_status_counts()
        stats = {status: counts.get(status, 0) for status in SUBSCRIPTION_STATUSES}
        stats['total'] = sum(counts.values())
        return stats

    def find_expiring(self, days: Optional[int] = None) -> List[Subscription]:
        now = datetime.now(timezone.utc)
        days = settings.EXPIRING_SOON_DAYS if days is None else days
        return self.subscriptions.find_expiring_between(now, now + timedelta(days=days))

    # ------------------------------------------------------------------
    # Auth codes
    # ------------------------------------------------------------------

    def create_auth_code(
        self,
        user_name: str,
        user_email: str,
        code: Optional[str] = None,
        context: Optional[AuditContext] = None
    ) -> AuthCode:
        """
        Issue an auth code to a customer

        Raises:
            DuplicateAuthCodeError: email (or code) already has an auth code
            ValueError: invalid input
        """
        user_name = (user_name or '').strip()
        user_email = (user_email or '').strip().lower()
        if not user_name:
            raise ValueError("user_name is required")
        if not is_valid_email(user_email):
            raise ValueError("Please enter a valid email address")

        if self.subscriptions.find_auth_code_by_email(user_email):
            raise DuplicateAuthCodeError(f"An auth code already exists for {user_email}")

        if code:
            code = code.strip().upper()
        else:
            code = generate_user_code()
            while self.subscriptions.auth_code_exists(code):
                code = generate_user_code()

        try:
            auth_code = self.subscriptions.create_auth_code(
                code, user_name, user_email,
                created_by=context.user_id if context else None
            )
        except pg_errors.UniqueViolation:
            raise DuplicateAuthCodeError(f"Auth code {code} or email {user_email} already in use")

        logger.info(f"Auth code issued to {user_email}")
        record_admin_action(context, 'create', 'user_auth_codes', auth_code.id,
                            new_values={'user_email': user_email, 'user_name': user_name})
        return auth_code

    def set_auth_code_active(
        self,
        auth_code_id: str,
        is_active: bool,
        context: Optional[AuditContext] = None
    ) -> Optional[AuthCode]:
        auth_code = self.subscriptions.set_auth_code_active(auth_code_id, is_active)
        if auth_code:
            record_admin_action(context, 'update', 'user_auth_codes', auth_code_id,
                                new_values={'is_active': is_active})
        return auth_code

    # ------------------------------------------------------------------
    # Subscriptions (admin)
    # ------------------------------------------------------------------

    def create_subscription(self, data: dict, context: Optional[AuditContext] = None) -> Subscription:
        _validate_plan(data['subscription_type'], data['subscription_period'])

        values = dict(data)
        start_date = values.get('start_date') or datetime.now(timezone.utc)
        values['start_date'] = start_date
        values['expiry_date'] = calculate_expiry(start_date, values['subscription_period'])
        values['status'] = classify_status('active', values['expiry_date'])

        subscription = self.subscriptions.create(values)
        logger.info(f"Subscription created: {subscription.id} for {values['user_auth_code_id']}")
        record_admin_action(context, 'create', 'user_subscriptions', subscription.id,
                            new_values={k: str(v) for k, v in values.items() if k != 'password'})
        return subscription

    def update_subscription(
        self,
        subscription_id: str,
        updates: dict,
        context: Optional[AuditContext] = None
    ) -> Optional[Subscription]:
        if 'status' in updates and updates['status'] not in SUBSCRIPTION_STATUSES:
            raise ValueError(f"Invalid status '{updates['status']}'")

        subscription = self.subscriptions.update(subscription_id, updates)
        if subscription:
            record_admin_action(context, 'update', 'user_subscriptions', subscription_id,
                                new_values={k: str(v) for k, v in updates.items() if k != 'password'})
        return subscription

    # ------------------------------------------------------------------
    # Product codes (admin)
    # ------------------------------------------------------------------

    def approve_product_code(
        self,
        product_code_id: str,
        admin_notes: Optional[str] = None,
        start_date: Optional[datetime] = None,
        context: Optional[AuditContext] = None
    ) -> dict:
        """
        Approve a pending code; creates the customer's subscription

        Raises:
            LookupError: code missing
            ValueError: code is not pending
        """
        code = self.product_codes.find_by_id(product_code_id)
        if not code:
            raise LookupError(f"Product code {product_code_id} not found")

        start_date = start_date or datetime.now(timezone.utc)
        expiry_date = calculate_expiry(start_date, code.subscription_period)
        status = classify_status('active', expiry_date)

        result = self.product_codes.approve(
            product_code_id,
            admin_id=context.user_id if context else None,
            admin_notes=admin_notes,
            start_date=start_date,
            expiry_date=expiry_date,
            status=status,
        )
        logger.info(f"Product code {result['product_code']} approved -> subscription {result['subscription_id']}")
        record_admin_action(context, 'approve', 'product_codes', product_code_id, new_values=result)
        return {**result, "status": status, "expiry_date": expiry_date.isoformat()}

    def reject_product_code(
        self,
        product_code_id: str,
        admin_notes: Optional[str] = None,
        context: Optional[AuditContext] = None
    ) -> dict:
        result = self.product_codes.reject(product_code_id, admin_notes)
        logger.info(f"Product code {result['product_code']} rejected")
        record_admin_action(context, 'reject', 'product_codes', product_code_id,
                            new_values={'admin_notes': admin_notes})
        return result

    def delete_product_code(self, product_code_id: str, context: Optional[AuditContext] = None) -> Optional[str]:
        deleted = self.product_codes.delete(product_code_id)
        if deleted:
            record_admin_action(context, 'delete', 'product_codes', product_code_id,
                                old_values={'product_code': deleted})
        return deleted

    def delete_user_codes(self, user_email: str, context: Optional[AuditContext] = None) -> int:
        user_email = (user_email or '').strip().lower()
        if not user_email:
            raise ValueError("user_email is required")

        deleted = self.product_codes.delete_by_user_email(user_email)
        logger.info(f"Deleted {deleted} product codes of {user_email}")
        record_admin_action(context, 'delete_user_codes', 'product_codes', None,
                            old_values={'user_email': user_email, 'deleted': deleted})
        return deleted

    def cancel_code_subscription(
        self,
        product_code_id: str,
        context: Optional[AuditContext] = None
    ) -> Optional[str]:
        subscription_id = self.product_codes.cancel_subscription(product_code_id)
        if subscription_id:
            record_admin_action(context, 'cancel', 'user_subscriptions', subscription_id,
                                new_values={'status': 'cancelled', 'product_code_id': product_code_id})
        return subscription_id

    # ------------------------------------------------------------------
    # Portal
    # ------------------------------------------------------------------

    def sign_in(self, code: str) -> Optional[Tuple[AuthCode, List[Subscription]]]:
        """Active auth code and its subscriptions, or None"""
        code = (code or '').strip().upper()
        if not code:
            return None

        auth_code = self.subscriptions.find_active_auth_code(code)
        if not auth_code:
            logger.info("Portal sign-in with unknown or inactive code")
            return None

        return auth_code, self.subscriptions.find_by_auth_code(auth_code.id)

    def list_customer_subscriptions(self, auth_code: AuthCode) -> List[Subscription]:
        return self.subscriptions.find_by_auth_code(auth_code.id)

    def list_customer_product_codes(self, auth_code: AuthCode) -> List[ProductCode]:
        codes, _ = self.product_codes.find_all(user_auth_code_id=auth_code.id, limit=500)
        return codes

    def _receipt_amount(self, subscription: Subscription) -> float:
        """custom_price when set, otherwise the catalog price of the plan"""
        if subscription.custom_price:
            return float(subscription.custom_price)

        product = self.products.find_by_id(subscription.product_id)
        if not product:
            return 0.0
        return self.pricing.resolve_price(
            product, subscription.subscription_type, subscription.subscription_period
        )

    def build_receipt(
        self,
        subscription_id: str,
        auth_code: Optional[AuthCode] = None,
        now: Optional[datetime] = None
    ) -> Receipt:
        """
        Receipt data for one subscription

        From the portal, pass the signed-in auth_code and the subscription
        must belong to it. Admins omit it and the owning code is looked up.

        Raises:
            LookupError: subscription missing, owned by another code, or its
                auth code no longer exists
        """
        subscription = self.subscriptions.find_by_id(subscription_id)
        if not subscription or (auth_code and subscription.user_auth_code_id != auth_code.id):
            raise LookupError(f"Subscription {subscription_id} not found")

        owner = auth_code or self.subscriptions.find_auth_code_by_id(subscription.user_auth_code_id)
        if not owner:
            raise LookupError(f"Auth code of subscription {subscription_id} not found")

        now = now or datetime.now(timezone.utc)
        product = subscription.product
        line = ReceiptLine(
            product_id=subscription.product_id,
            product_name=product.name if product else 'Subscription',
            category=product.category if product else None,
            subscription_type=subscription.subscription_type,
            subscription_period=subscription.subscription_period,
            plan_label=plan_label(subscription.subscription_type, subscription.subscription_period),
            amount=self._receipt_amount(subscription),
        )
        status = classify_status(subscription.status, subscription.expiry_date, now=now)

        receipt = Receipt(
            receipt_number=generate_receipt_number(),
            issued_at=now,
            subscription_id=subscription.id,
            customer_name=owner.user_name,
            customer_email=owner.user_email,
            auth_code=owner.code,
            start_date=subscription.start_date,
            expiry_date=subscription.expiry_date,
            status=RECEIPT_STATUS_LABELS[status],
            auto_renew=subscription.auto_renew,
            notes=subscription.notes,
            lines=[line],
            total=line.amount,
            currency=subscription.currency,
            support_email=settings.SUPPORT_EMAIL,
        )
        logger.info(f"Receipt {receipt.receipt_number} issued for subscription {subscription.id}")
        return receipt

    def request_refund(
        self,
        auth_code: AuthCode,
        subscription_id: str,
        reason: str,
        description: Optional[str]
    ) -> SubscriptionRefundRequest:
        """
        Portal refund request for a subscription the code owns

        Raises:
            ValueError: missing reason/description or a request is already open
            LookupError: subscription missing or owned by another code
        """
        reason = (reason or '').strip()
        description = (description or '').strip()
        if not reason or not description:
            raise ValueError("Please provide both reason and description")

        subscription = self.subscriptions.find_by_id(subscription_id)
        if not subscription or subscription.user_auth_code_id != auth_code.id:
            raise LookupError(f"Subscription {subscription_id} not found")

        if self.refunds.has_open_subscription_refund(subscription_id):
            raise ValueError("A refund request for this subscription is already pending")

        refund = self.refunds.create_subscription_refund(
            subscription_id, auth_code.id, reason, description
        )
        logger.info(f"Refund request {refund.id} opened for subscription {subscription_id}")
        return refund

    def update_refund_request(
        self,
        refund_id: str,
        status: str,
        admin_notes: Optional[str] = None,
        refund_amount: Optional[float] = None,
        refund_method: Optional[str] = None,
        context: Optional[AuditContext] = None
    ) -> Optional[SubscriptionRefundRequest]:
        """
        Set a portal refund request's status

        Moving to approved with an amount books one refund financial
        adjustment; re-saving an approved request books nothing.
        """
        if status not in REFUND_STATUSES:
            raise ValueError(f"Invalid status '{status}'. Valid: {', '.join(REFUND_STATUSES)}")
        if refund_amount is not None and refund_amount <= 0:
            raise ValueError("refund_amount must be positive")

        data = {'status': status}
        if admin_notes is not None:
            data['admin_notes'] = admin_notes
        if refund_amount is not None:
            data['refund_amount'] = refund_amount
        if refund_method is not None:
            data['refund_method'] = refund_method

        current = self.refunds.find_subscription_refund(refund_id)
        if not current:
            return None

        refund = self.refunds.update_subscription_refund(refund_id, data)
        if not refund:
            return None

        if status == 'approved' and refund_amount and current.status != 'approved':
            subscription = self.subscriptions.find_by_id(refund.subscription_id)
            self.finance.create_adjustment({
                'adjustment_type': 'refund',
                'amount': refund_amount,
                'currency': subscription.currency if subscription else settings.DEFAULT_CURRENCY,
                'reason': f"Subscription refund: {refund.reason}",
                'reference_id': refund.id,
                'reference_table': 'subscription_refund_requests',
                'created_by': context.user_id if context else None,
            })
            logger.info(f"Refund adjustment booked for request {refund_id}: {refund_amount}")

        record_admin_action(context, 'update', 'subscription_refund_requests', refund_id, new_values=data)
        return refund


_subscription_service: Optional[SubscriptionService] = None


def get_subscription_service() -> SubscriptionService:
    global _subscription_service
    if _subscription_service is None:
        _subscription_service = SubscriptionService()
    return _subscription_service
