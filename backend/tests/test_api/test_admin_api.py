"""
API tests for the admin dashboard, finance, subscription portal and
maintenance endpoints

Author: TM3
Date: 2026-03-10
"""
from datetime import datetime
from unittest.mock import MagicMock, patch

from jose import jwt

from toolsy.domain.finance import FinancialSummary
from toolsy.domain.subscription import AuthCode, Receipt, ReceiptLine, SubscriptionRefundRequest
from toolsy.services.finance_service import get_finance_service
from toolsy.services.refund_service import get_refund_service
from toolsy.services.subscription_service import DuplicateAuthCodeError, get_subscription_service

JWT_SECRET = "test-jwt-secret"

AUTH_CODE = AuthCode(id="a1", code="AB12CD34", user_name="Ada Obi", user_email="ada@example.com")

RECEIPT = Receipt(
    receipt_number="RCP-0042", issued_at=datetime(2026, 3, 10, 12, 0), subscription_id="s1",
    customer_name="Ada Obi", customer_email="ada@example.com", auth_code="AB12CD34",
    start_date=datetime(2026, 3, 1), expiry_date=datetime(2026, 4, 1), status="PAID",
    lines=[ReceiptLine(product_id="p1", product_name="Netflix Premium", subscription_type="shared",
                       subscription_period="1_month", plan_label="SHARED - 1 Month", amount=4000)],
    total=4000, support_email="support@toolsy.store",
)


def override(app, dependency, service):
    app.dependency_overrides[dependency] = lambda: service
    return service


def bearer(sub="admin-1", email="admin@toolsy.store"):
    token = jwt.encode({"sub": sub, "email": email, "aud": "authenticated"}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


class TestAdminAuthentication:

    def test_missing_token_is_401(self, client):
        response = client.get("/api/v1/admin/stats")

        assert response.status_code == 401

    @patch('toolsy.repositories.admin_repository.AdminRepository.has_role', return_value=False)
    @patch('toolsy.core.auth.settings')
    def test_non_admin_is_403(self, mock_settings, mock_has_role, client):
        mock_settings.SUPABASE_JWT_SECRET = JWT_SECRET

        response = client.get("/api/v1/admin/stats", headers=bearer(sub="user-7"))

        assert response.status_code == 403
        mock_has_role.assert_called_once_with("user-7", "admin")

    @patch('toolsy.api.admin.get_dashboard_stats', return_value={"total_products": 12})
    @patch('toolsy.repositories.admin_repository.AdminRepository.has_role', return_value=True)
    @patch('toolsy.core.auth.settings')
    def test_admin_token_is_accepted(self, mock_settings, mock_has_role, mock_stats, client):
        mock_settings.SUPABASE_JWT_SECRET = JWT_SECRET

        response = client.get("/api/v1/admin/stats", headers=bearer())

        assert response.status_code == 200
        assert response.json()["data"] == {"total_products": 12}

    @patch('toolsy.core.auth.settings')
    def test_tampered_token_is_401(self, mock_settings, client):
        mock_settings.SUPABASE_JWT_SECRET = "another-secret"

        response = client.get("/api/v1/admin/stats", headers=bearer())

        assert response.status_code == 401


class TestAdminEndpoints:

    def test_duplicate_auth_code_is_409(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.create_auth_code.side_effect = DuplicateAuthCodeError("ada@example.com already has an auth code")

        response = client.post("/api/v1/admin/auth-codes", json={"user_name": "Ada Obi", "user_email": "ada@example.com"})

        assert response.status_code == 409

    def test_create_auth_code_passes_admin_context(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.create_auth_code.return_value = AUTH_CODE

        response = client.post("/api/v1/admin/auth-codes", json={"user_name": "Ada Obi", "user_email": "ada@example.com"})

        assert response.status_code == 201
        assert response.json()["data"]["code"] == "AB12CD34"
        assert service.create_auth_code.call_args.kwargs["context"].user_id == "admin-1"

    def test_approve_without_body(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.approve_product_code.return_value = {"subscription_id": "s1"}

        response = client.post("/api/v1/admin/product-codes/pc1/approve")

        assert response.status_code == 200
        kwargs = service.approve_product_code.call_args.kwargs
        assert kwargs["admin_notes"] is None
        assert kwargs["start_date"] is None

    def test_approve_missing_code_is_404(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.approve_product_code.side_effect = LookupError("Product code pc9 not found")

        response = client.post("/api/v1/admin/product-codes/pc9/approve", json={"admin_notes": "paid"})

        assert response.status_code == 404

    def test_delete_codes_by_user_is_not_shadowed(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.delete_user_codes.return_value = 3

        response = client.delete("/api/v1/admin/product-codes/by-user?email=ada@example.com")

        assert response.status_code == 200
        service.delete_user_codes.assert_called_once()
        service.delete_product_code.assert_not_called()

    def test_refund_ticket_status_validation(self, client, app, as_admin):
        service = override(app, get_refund_service, MagicMock())
        service.update_status.side_effect = ValueError("Invalid status 'lost'")

        response = client.patch("/api/v1/admin/refund-requests/REF-1-abc", json={"status": "lost"})

        assert response.status_code == 400

    def test_subscription_refund_amount_is_float(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.update_refund_request.return_value = SubscriptionRefundRequest(
            id="r1", subscription_id="s1", user_auth_code_id="a1", reason="not-working", status="approved"
        )

        response = client.patch("/api/v1/admin/subscription-refunds/r1",
                                json={"status": "approved", "refund_amount": "4000.50"})

        assert response.status_code == 200
        assert service.update_refund_request.call_args.kwargs["refund_amount"] == 4000.5

    @patch('toolsy.api.admin.get_testimonial_service')
    @patch('toolsy.api.admin.get_catalog_service')
    def test_cache_invalidation(self, mock_catalog, mock_testimonials, client, as_admin):
        response = client.post("/api/v1/admin/cache/invalidate")

        assert response.status_code == 200
        mock_catalog.return_value.invalidate_cache.assert_called_once()
        mock_testimonials.return_value.invalidate_cache.assert_called_once()

    @patch('toolsy.api.admin.get_testimonial_service')
    @patch('toolsy.api.admin.get_catalog_service')
    def test_cache_stats(self, mock_catalog, mock_testimonials, client, as_admin):
        mock_catalog.return_value.cache_stats.return_value = {'name': 'catalog', 'entries': 1}
        mock_testimonials.return_value.cache_stats.return_value = {'name': 'testimonials', 'entries': 0}

        response = client.get("/api/v1/admin/cache/stats")

        assert response.status_code == 200
        assert response.json()["data"]["catalog"]["entries"] == 1

    def test_subscription_receipt(self, client, app, as_admin):
        service = override(app, get_subscription_service, MagicMock())
        service.build_receipt.return_value = RECEIPT

        response = client.get("/api/v1/admin/subscriptions/s1/receipt")

        assert response.status_code == 200
        assert response.json()["data"]["receipt_number"] == "RCP-0042"
        service.build_receipt.assert_called_once_with("s1")


class TestFinanceEndpoints:

    def test_summary_for_custom_range(self, client, app, as_admin):
        service = override(app, get_finance_service, MagicMock())
        service.get_summary.return_value = FinancialSummary.from_totals(
            income=1000, expenses=300, refunds=100, pending_payments=0, pending_vendor=0,
            start_date="2026-03-01", end_date="2026-03-31",
        )

        response = client.get("/api/v1/admin/finance/summary?range=custom&start_date=2026-03-01&end_date=2026-03-31")

        assert response.status_code == 200
        assert response.json()["data"]["net_profit"] == 600
        start, end = service.get_summary.call_args[0]
        assert (start.isoformat(), end.isoformat()) == ("2026-03-01", "2026-03-31")

    def test_summary_with_invalid_range_is_400(self, client, app, as_admin):
        override(app, get_finance_service, MagicMock())

        response = client.get("/api/v1/admin/finance/summary?range=2w")

        assert response.status_code == 400

    def test_unknown_vendor_is_404(self, client, app, as_admin):
        service = override(app, get_finance_service, MagicMock())
        service.record_vendor_transaction.side_effect = LookupError("Vendor v9 not found")

        response = client.post("/api/v1/admin/finance/vendor-transactions", json={
            "vendor_id": "v9", "transaction_type": "purchase", "amount": 1000
        })

        assert response.status_code == 404

    def test_finance_requires_admin(self, client):
        response = client.get("/api/v1/admin/finance/payments")

        assert response.status_code == 401


class TestPortalEndpoints:

    def test_login_with_valid_code(self, client, app):
        service = override(app, get_subscription_service, MagicMock())
        service.sign_in.return_value = (AUTH_CODE, [])

        response = client.post("/api/v1/portal/login", json={"code": "ab12cd34"})

        assert response.status_code == 200
        assert response.json()["data"]["auth_code"]["user_email"] == "ada@example.com"

    def test_login_with_invalid_code(self, client, app):
        service = override(app, get_subscription_service, MagicMock())
        service.sign_in.return_value = None

        response = client.post("/api/v1/portal/login", json={"code": "ZZZZZZZZ"})

        assert response.status_code == 401

    def test_login_is_rate_limited(self, client, app):
        service = override(app, get_subscription_service, MagicMock())
        service.sign_in.return_value = None

        statuses = [client.post("/api/v1/portal/login", json={"code": "ZZZZZZZZ"}).status_code for _ in range(6)]

        assert statuses == [401] * 5 + [429]

    def test_subscriptions_require_auth_code_header(self, client):
        response = client.get("/api/v1/portal/subscriptions")

        assert response.status_code == 401

    @patch('toolsy.repositories.subscription_repository.SubscriptionRepository.find_active_auth_code')
    def test_refund_request_for_foreign_subscription_is_404(self, mock_find, client, app):
        mock_find.return_value = AUTH_CODE
        service = override(app, get_subscription_service, MagicMock())
        service.request_refund.side_effect = LookupError("Subscription s9 not found")

        response = client.post(
            "/api/v1/portal/subscriptions/s9/refund-requests",
            json={"reason": "not-working", "description": "broken"},
            headers={"X-Auth-Code": "ab12cd34"},
        )

        assert response.status_code == 404
        mock_find.assert_called_once_with("AB12CD34")
        auth_code = service.request_refund.call_args[0][0]
        assert auth_code.id == "a1"

    @patch('toolsy.repositories.subscription_repository.SubscriptionRepository.find_active_auth_code')
    def test_receipt_for_foreign_subscription_is_404(self, mock_find, client, app):
        mock_find.return_value = AUTH_CODE
        service = override(app, get_subscription_service, MagicMock())
        service.build_receipt.side_effect = LookupError("Subscription s9 not found")

        response = client.get("/api/v1/portal/subscriptions/s9/receipt", headers={"X-Auth-Code": "AB12CD34"})

        assert response.status_code == 404
        assert service.build_receipt.call_args.kwargs["auth_code"].id == "a1"


class TestMaintenanceEndpoints:

    @patch('toolsy.api.dependencies.settings')
    def test_wrong_key_is_401(self, mock_settings, client):
        mock_settings.MAINTENANCE_API_KEY = "cron-secret"

        response = client.post("/api/v1/maintenance/subscriptions/refresh-statuses",
                               headers={"X-Maintenance-Key": "guess"})

        assert response.status_code == 401

    @patch('toolsy.api.dependencies.settings')
    def test_refresh_with_key(self, mock_settings, client, app):
        mock_settings.MAINTENANCE_API_KEY = "cron-secret"
        service = override(app, get_subscription_service, MagicMock())
        service.refresh_statuses.return_value = {'active': 3, 'expiring_soon': 1, 'expired': 2, 'updated': 2}

        response = client.post("/api/v1/maintenance/subscriptions/refresh-statuses",
                               headers={"X-Maintenance-Key": "cron-secret"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "2 subscriptions updated"
        assert body["counts"]["expired"] == 2
        assert datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00")).tzinfo is not None
