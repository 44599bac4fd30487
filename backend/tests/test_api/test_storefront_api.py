"""
API tests for the public storefront: products, cart, checkout, refund form,
currencies, SEO and health

Services are replaced through dependency overrides, so no database is needed.

Author: TM3
Date: 2026-03-10
"""
from unittest.mock import AsyncMock, MagicMock, patch

from toolsy.domain.cart import Cart, CartItem, CartProduct
from toolsy.domain.checkout import CheckoutResult
from toolsy.domain.refund import RefundTicket
from toolsy.services.cart_service import get_cart_service
from toolsy.services.catalog_service import get_catalog_service
from toolsy.services.checkout_service import get_checkout_service
from toolsy.services.refund_service import get_refund_service


def override(app, dependency, service):
    app.dependency_overrides[dependency] = lambda: service
    return service


class TestProductsAPI:

    def test_list_products_page_shape(self, client, app, sample_product):
        service = override(app, get_catalog_service, MagicMock())
        service.list_products.return_value = ([sample_product], 1)

        response = client.get("/api/v1/products/?category=Streaming&limit=10")

        assert response.status_code == 200
        body = response.json()
        assert (body["status"], body["total"], body["limit"], body["offset"], body["count"]) == ("success", 1, 10, 0, 1)
        assert body["data"][0]["slug"] == "netflix-premium"
        service.list_products.assert_called_once_with(category="Streaming", search=None, limit=10, offset=0)

    def test_unknown_product_is_404(self, client, app):
        service = override(app, get_catalog_service, MagicMock())
        service.get_product.return_value = None

        response = client.get("/api/v1/products/missing")

        assert response.status_code == 404

    def test_product_by_slug(self, client, app, sample_product):
        service = override(app, get_catalog_service, MagicMock())
        service.get_product_by_slug.return_value = sample_product

        response = client.get("/api/v1/products/slug/netflix-premium")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Netflix Premium"

    def test_repository_failure_is_500(self, client, app):
        service = override(app, get_catalog_service, MagicMock())
        service.list_products.side_effect = Exception("connection refused")

        response = client.get("/api/v1/products/")

        assert response.status_code == 500
        assert "Error fetching products" in response.json()["detail"]

    def test_create_product_requires_admin(self, client, app):
        service = override(app, get_catalog_service, MagicMock())

        response = client.post("/api/v1/products/", json={
            "name": "Spotify", "description": "Music", "original_price": "₦3,000", "category": "Music"
        })

        assert response.status_code == 401
        service.create_product.assert_not_called()

    def test_create_product_as_admin(self, client, app, as_admin, sample_product):
        service = override(app, get_catalog_service, MagicMock())
        service.create_product.return_value = sample_product

        response = client.post("/api/v1/products/", json={
            "name": "Netflix Premium", "description": "4K", "original_price": "₦6,000", "category": "Streaming"
        })

        assert response.status_code == 201
        data, = service.create_product.call_args[0]
        assert data["name"] == "Netflix Premium"
        assert service.create_product.call_args.kwargs["context"].user_id == "admin-1"

    def test_invalid_share_platform_is_400(self, client, app):
        service = override(app, get_catalog_service, MagicMock())
        service.record_share.side_effect = ValueError("Invalid platform")

        response = client.post("/api/v1/products/p1/share", json={"platform": "myspace"})

        assert response.status_code == 400


class TestCartAPI:

    def make_cart(self):
        return Cart(id="c1", items=[
            CartItem(product=CartProduct(id="p1", name="Netflix Premium", price=4000), quantity=2)
        ])

    def test_get_cart_includes_totals(self, client, app):
        service = override(app, get_cart_service, MagicMock())
        service.get_cart.return_value = self.make_cart()

        response = client.get("/api/v1/cart/c1")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_items"] == 2
        assert data["total_price"] == 8000

    def test_add_unknown_product_is_404(self, client, app):
        service = override(app, get_cart_service, MagicMock())
        service.add_item.side_effect = LookupError("Product p9 not found")

        response = client.post("/api/v1/cart/c1/items", json={"product_id": "p9"})

        assert response.status_code == 404

    def test_disabled_plan_is_400(self, client, app):
        service = override(app, get_cart_service, MagicMock())
        service.add_item.side_effect = ValueError("Plan private is not available")

        response = client.post("/api/v1/cart/c1/items", json={
            "product_id": "p1", "subscription_type": "private", "subscription_period": "1_month"
        })

        assert response.status_code == 400


class TestCheckoutAPI:

    BODY = {
        "user_name": "Ada Obi",
        "user_email": "ada@example.com",
        "items": [{"product_id": "p1", "subscription_type": "shared", "subscription_period": "1_month", "quantity": 1}],
    }

    def test_checkout_success(self, client, app):
        service = override(app, get_checkout_service, MagicMock())
        service.checkout.return_value = CheckoutResult(
            purchase_request_id="pr1",
            user_code="AB12CD34",
            user_name="Ada Obi",
            user_email="ada@example.com",
            is_returning_user=False,
            product_codes=[{"product_code": "NET-AAAAAA", "product_id": "p1", "product_name": "Netflix Premium"}],
            total_amount=4000,
            whatsapp_url="https://wa.me/2348000000000?text=hi",
        )

        response = client.post("/api/v1/checkout/", json=self.BODY)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_code"] == "AB12CD34"
        assert data["product_codes"][0]["product_code"] == "NET-AAAAAA"

    def test_checkout_validation_error(self, client, app):
        service = override(app, get_checkout_service, MagicMock())
        service.checkout.side_effect = ValueError("Please enter a valid email address")

        response = client.post("/api/v1/checkout/", json=dict(self.BODY, user_email="nope"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a valid email address"

    def test_checkout_is_rate_limited(self, client, app):
        service = override(app, get_checkout_service, MagicMock())
        service.checkout.side_effect = ValueError("Cart is empty")

        statuses = [client.post("/api/v1/checkout/", json=self.BODY).status_code for _ in range(11)]

        assert statuses[:10] == [400] * 10
        assert statuses[10] == 429

    def test_whatsapp_sent_with_wrong_code_is_404(self, client, app):
        service = override(app, get_checkout_service, MagicMock())
        service.mark_whatsapp_sent.return_value = False

        response = client.post("/api/v1/checkout/pr1/whatsapp-sent", json={"user_code": " ab12cd34 "})

        assert response.status_code == 404
        service.mark_whatsapp_sent.assert_called_once_with("pr1", "AB12CD34")


class TestRefundFormAPI:

    def test_multipart_submission(self, client, app):
        service = override(app, get_refund_service, MagicMock())
        ticket = RefundTicket(ticket_id="REF-1700000000000-abc123xyz", name="Ada Obi", email="ada@example.com",
                              order_id="ORD-1001", reason="not-working", description="Broken")
        service.submit = AsyncMock(return_value={
            "ticket": ticket,
            "uploaded_files": ["REF-1700000000000-abc123xyz/proof.png"],
            "notifications": {"discord": "sent"},
        })

        response = client.post(
            "/api/v1/refund-requests/",
            data={"name": "Ada Obi", "email": "ada@example.com", "orderId": "ORD-1001",
                  "reason": "not-working", "description": "Broken"},
            files=[("proof", ("proof.png", b"png-bytes", "image/png"))],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["ticketId"] == "REF-1700000000000-abc123xyz"
        kwargs = service.submit.call_args.kwargs
        assert kwargs["order_id"] == "ORD-1001"
        assert kwargs["files"] == [("proof.png", b"png-bytes", "image/png")]

    def test_missing_fields_is_400(self, client, app):
        service = override(app, get_refund_service, MagicMock())
        service.submit = AsyncMock(side_effect=ValueError("Missing required fields: name"))

        response = client.post("/api/v1/refund-requests/", data={"email": "ada@example.com"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: name"


class TestPublicUtilities:

    def test_currency_conversion(self, client):
        response = client.get("/api/v1/currencies/convert?amount=10000&currency=USD")

        assert response.status_code == 200
        assert response.json()["data"]["formatted"] == "$10.00"

    def test_unknown_currency_is_400(self, client):
        response = client.get("/api/v1/currencies/convert?amount=100&currency=JPY")

        assert response.status_code == 400

    def test_sitemap_is_xml(self, client, app, sample_product):
        service = override(app, get_catalog_service, MagicMock())
        service.list_products.return_value = ([sample_product], 1)

        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "/product/netflix-premium</loc>" in response.text

    def test_meta_noindex(self, client):
        response = client.get("/api/v1/seo/meta?title=Admin&description=Dashboard&path=/admin&noindex=true")

        assert response.status_code == 200
        assert response.json()["data"]["robots"] == "noindex, nofollow"

    @patch('toolsy.main.get_db_connection_with_retry')
    def test_health_reports_degraded_database(self, mock_connect, client):
        mock_connect.side_effect = Exception("could not connect to server")

        response = client.get("/health")

        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"]["status"] == "disconnected"

    def test_rate_limit_headers(self, client):
        response = client.get("/api/v1/currencies/")

        assert response.headers["X-RateLimit-Limit"] == "200"
