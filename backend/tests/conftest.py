"""
Pytest fixtures and configuration for Toolsy Store Backend tests

This file provides shared fixtures that can be used across all test modules.
No test needs a database: repositories are exercised against a mocked
connection and services against mocked repositories.

Author: TM3
Date: 2026-03-10
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from toolsy.core.rate_limit import rate_limiter
from toolsy.domain.product import PricingPlan, Product


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Rate limit windows are process-wide; start every test with a clean slate"""
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def mock_db():
    """
    Provides a (connection, cursor) pair of MagicMocks

    Patch a repository module's get_db_connection_dict to return the
    connection, then script cursor.fetchone / fetchall.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


@pytest.fixture
def sample_product():
    """Product with an enabled shared plan and a disabled private plan"""
    return Product(
        id="11111111-1111-1111-1111-111111111111",
        name="Netflix Premium",
        slug="netflix-premium",
        description="4K streaming on a shared account",
        price="₦4,500",
        original_price="₦6,000",
        category="Streaming",
        rating=4.8,
        features=["4K UHD", "4 screens"],
        main_image_url="https://cdn.toolsy.store/netflix.png",
        updated_at=datetime(2026, 2, 20, 10, 0, tzinfo=timezone.utc),
        pricing_plans=[
            PricingPlan(plan_type="shared", is_enabled=True, monthly_price="₦4,000", yearly_price="₦40,000"),
            PricingPlan(plan_type="private", is_enabled=False, monthly_price="₦9,000"),
        ],
    )


@pytest.fixture
def sample_product_row():
    """Database row for a product, as RealDictCursor returns it"""
    return {
        'id': "11111111-1111-1111-1111-111111111111",
        'name': "Netflix Premium",
        'slug': "netflix-premium",
        'description': "4K streaming on a shared account",
        'detailed_description': None,
        'price': "₦4,500",
        'original_price': "₦6,000",
        'category': "Streaming",
        'rating': 4.8,
        'features': ["4K UHD", "4 screens"],
        'main_image_url': "https://cdn.toolsy.store/netflix.png",
        'video_url': None,
        'video_thumbnail_url': None,
        'created_at': datetime(2026, 2, 1, tzinfo=timezone.utc),
        'updated_at': None,
    }


@pytest.fixture
def sample_refund_form():
    return {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "order_id": "ORD-1001",
        "reason": "not-working",
        "description": "The shared login stopped working after two days.",
    }


@pytest.fixture
def client():
    """
    TestClient for the full app

    Tests swap services and auth through app.dependency_overrides; the
    overrides are cleared afterwards.
    """
    from fastapi.testclient import TestClient
    from toolsy.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def app():
    from toolsy.main import app as fastapi_app
    return fastapi_app


@pytest.fixture
def as_admin(app):
    """Authenticate every admin endpoint as admin-1"""
    from toolsy.api.dependencies import admin_context
    from toolsy.services.audit_service import AuditContext

    app.dependency_overrides[admin_context] = lambda: AuditContext(user_id="admin-1", ip_address="testclient")
    return AuditContext(user_id="admin-1")
