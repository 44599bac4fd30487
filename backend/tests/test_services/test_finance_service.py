"""
Unit tests for FinanceService and the TTL cache

Author: TM3
Date: 2026-03-10
"""
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from toolsy.domain.finance import IncomingPayment
from toolsy.services.audit_service import AuditContext
from toolsy.services.cache import TTLCache
from toolsy.services.finance_service import FinanceService, resolve_date_range

TODAY = date(2026, 3, 10)


class TestResolveDateRange:

    @pytest.mark.parametrize("range_key, start", [
        ("7d", date(2026, 3, 3)),
        ("30d", date(2026, 2, 8)),
        ("90d", date(2025, 12, 10)),
        ("1y", date(2025, 3, 10)),
    ])
    def test_presets(self, range_key, start):
        assert resolve_date_range(range_key, today=TODAY) == (start, TODAY)

    def test_custom_range(self):
        assert resolve_date_range("custom", date(2026, 1, 1), date(2026, 1, 31), today=TODAY) == (
            date(2026, 1, 1), date(2026, 1, 31)
        )

    def test_custom_without_dates_falls_back_to_30_days(self):
        assert resolve_date_range("custom", date(2026, 1, 1), None, today=TODAY) == (date(2026, 2, 8), TODAY)

    def test_custom_start_after_end_raises(self):
        with pytest.raises(ValueError):
            resolve_date_range("custom", date(2026, 2, 1), date(2026, 1, 1), today=TODAY)

    def test_unknown_preset_raises(self):
        with pytest.raises(ValueError, match="Invalid range"):
            resolve_date_range("2w", today=TODAY)


class TestFinanceService:

    def setup_method(self):
        self.repository = MagicMock()
        self.service = FinanceService(repository=self.repository)

    def test_summary_arithmetic(self):
        self.repository.get_summary_totals.return_value = {
            'income': 200000, 'expenses': 50000, 'refunds': 10000,
            'pending_payments': 4000, 'pending_vendor': 2500,
        }

        summary = self.service.get_summary(date(2026, 3, 1), date(2026, 3, 31))

        assert summary.net_profit == 140000
        assert summary.pending_vendor_payments == 2500
        start, end = self.repository.get_summary_totals.call_args[0]
        assert start == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert end.date() == date(2026, 3, 31)

    def test_summary_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            self.service.get_summary(date(2026, 3, 31), date(2026, 3, 1))

    def test_sales_analytics_totals(self):
        self.repository.get_sales_by_period.return_value = [
            {'period': '2026-03-01', 'total_subscriptions': 3, 'total_revenue': 12000.0,
             'active_subscriptions': 2, 'expired_subscriptions': 1, 'total_refunds': 0},
            {'period': '2026-03-02', 'total_subscriptions': 1, 'total_revenue': 4500.0,
             'active_subscriptions': 1, 'expired_subscriptions': 0, 'total_refunds': 1},
        ]
        self.repository.get_sales_by_product.return_value = []

        data = self.service.get_sales_analytics("custom", "weekly", date(2026, 3, 1), date(2026, 3, 7))

        assert self.repository.get_sales_by_period.call_args[0][2] == 'week'
        assert data["group_by"] == 'week'
        assert data["totals"] == {
            "total_subscriptions": 4,
            "total_revenue": 16500.0,
            "active_subscriptions": 3,
            "total_refunds": 1,
            "average_order_value": 4125.0,
        }

    def test_sales_analytics_without_sales(self):
        self.repository.get_sales_by_period.return_value = []
        self.repository.get_sales_by_product.return_value = []

        data = self.service.get_sales_analytics("7d", "daily")

        assert data["totals"]["average_order_value"] == 0

    def test_sales_analytics_invalid_group_by(self):
        with pytest.raises(ValueError):
            self.service.get_sales_analytics("7d", "hourly")

    def test_record_payment_validates_method(self):
        with pytest.raises(ValueError, match="payment_method"):
            self.service.record_payment({'customer_name': 'Ada', 'amount': 100, 'payment_method': 'bitcoin'})

    @patch('toolsy.services.finance_service.record_admin_action')
    def test_update_payment_status_sets_verifier(self, mock_audit):
        self.repository.update_payment_status.return_value = IncomingPayment(
            id="pay-1", customer_name="Ada", amount=100, payment_status="confirmed"
        )

        self.service.update_payment_status("pay-1", "confirmed", context=AuditContext(user_id="admin-1"))

        assert self.repository.update_payment_status.call_args.kwargs["verified_by"] == "admin-1"
        mock_audit.assert_called_once()

    @patch('toolsy.services.finance_service.record_admin_action')
    def test_record_adjustment_sets_creator(self, mock_audit):
        self.service.record_adjustment(
            {'adjustment_type': 'refund', 'amount': 500}, context=AuditContext(user_id="admin-1")
        )

        assert self.repository.create_adjustment.call_args[0][0]['created_by'] == "admin-1"

    def test_record_adjustment_validates_type(self):
        with pytest.raises(ValueError):
            self.service.record_adjustment({'adjustment_type': 'gift', 'amount': 500})


class TestTTLCache:

    def test_get_or_load_loads_once(self):
        cache = TTLCache('test', ttl_seconds=60)
        loader = MagicMock(return_value=[1, 2, 3])

        assert cache.get_or_load('k', loader) == [1, 2, 3]
        assert cache.get_or_load('k', loader) == [1, 2, 3]
        loader.assert_called_once()

    def test_expired_entry_is_reloaded(self):
        cache = TTLCache('test', ttl_seconds=60)
        loader = MagicMock(side_effect=['old', 'new'])

        with patch('toolsy.services.cache.time.time', return_value=1000.0):
            cache.get_or_load('k', loader)
        with patch('toolsy.services.cache.time.time', return_value=1061.0):
            assert cache.get_or_load('k', loader) == 'new'

    def test_invalidate_one_key_or_all(self):
        cache = TTLCache('test', ttl_seconds=60)
        cache.set('a', 1)
        cache.set('b', 2)

        cache.invalidate('a')
        assert cache.get('a') is None
        assert cache.get('b') == 2

        cache.invalidate()
        assert cache.stats()['entries'] == 0
