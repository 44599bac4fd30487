"""
Unit tests for finance and refund domain models

Author: TM3
Date: 2026-03-10
"""
from decimal import Decimal

from toolsy.domain.finance import FinancialSummary, IncomingPayment
from toolsy.domain.refund import ProofFile, RefundTicket
from toolsy.domain.subscription import ProductCode


class TestFinancialSummary:

    def test_net_profit_is_income_minus_expenses_minus_refunds(self):
        summary = FinancialSummary.from_totals(
            income=Decimal('150000.00'),
            expenses=Decimal('40000.00'),
            refunds=Decimal('5000.00'),
            pending_payments=Decimal('12000.00'),
            pending_vendor=Decimal('8000.00'),
            start_date='2026-03-01',
            end_date='2026-03-31',
        )

        assert summary.total_income == 150000.0
        assert summary.total_expenses == 40000.0
        assert summary.total_refunds == 5000.0
        assert summary.net_profit == 105000.0
        assert summary.pending_payments == 12000.0
        assert summary.pending_vendor_payments == 8000.0
        assert summary.start_date == '2026-03-01'

    def test_missing_totals_count_as_zero(self):
        summary = FinancialSummary.from_totals(None, None, None, None, None)

        assert summary.net_profit == 0
        assert summary.total_income == 0

    def test_net_profit_can_be_negative(self):
        summary = FinancialSummary.from_totals(1000, 3000, 500, 0, 0)

        assert summary.net_profit == -2500


class TestMoneySerialization:

    def test_payment_to_dict_returns_float_amount(self):
        payment = IncomingPayment(id="pay-1", customer_name="Ada", amount=Decimal('4500.50'))

        data = payment.to_dict()

        assert data["amount"] == 4500.5
        assert isinstance(data["amount"], float)

    def test_product_code_to_dict_returns_float_price(self):
        code = ProductCode(
            id="pc-1", product_code="NET-AB12CD", product_id="p1",
            user_auth_code_id="a1", price=Decimal('4000.00')
        )

        assert code.to_dict()["price"] == 4000.0


class TestRefundTicket:

    def test_notification_payload_uses_webhook_field_names(self):
        ticket = RefundTicket(
            ticket_id="REF-1700000000000-abc123xyz",
            name="Ada Obi",
            email="ada@example.com",
            order_id="ORD-1001",
            reason="not-working",
            description="Stopped working",
            proof_files=[
                ProofFile(filename="a.png", size=10, mimetype="image/png"),
                ProofFile(filename="b.mp4", size=20, mimetype="video/mp4"),
            ],
        )

        payload = ticket.notification_payload()

        assert payload == {
            'ticketId': "REF-1700000000000-abc123xyz",
            'name': "Ada Obi",
            'email': "ada@example.com",
            'orderId': "ORD-1001",
            'reason': "not-working",
            'description': "Stopped working",
            'proofCount': 2,
        }
