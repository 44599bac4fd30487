"""
Unit tests for CatalogService and the catalog validation helpers

Author: TM3
Date: 2026-03-10
"""
from unittest.mock import MagicMock, patch

import pytest

from toolsy.core.validation import (
    is_valid_image_url,
    is_valid_video_url,
    sanitize_html,
    slugify,
    validate_product_data,
)
from toolsy.domain.product import PricingPlan, Product, ProductImage
from toolsy.services.catalog_service import CatalogService


VALID_PRODUCT = {
    "name": "ChatGPT Plus (Shared)",
    "description": "GPT-4 access on a shared seat",
    "original_price": "₦15,000",
    "category": "AI Tools",
    "rating": 4.5,
    "features": ["GPT-4", "Image generation"],
    "main_image_url": "https://cdn.toolsy.store/chatgpt.webp",
}


class TestValidation:

    @pytest.mark.parametrize("name, expected", [
        ("ChatGPT Plus (Shared)", "chatgpt-plus-shared"),
        ("  Netflix   Premium  ", "netflix-premium"),
        ("Adobe---CC 2026!", "adobe-cc-2026"),
        ("!!!", ""),
    ])
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_valid_product_has_no_errors(self):
        assert validate_product_data(VALID_PRODUCT) == []

    def test_all_errors_are_reported_together(self):
        errors = validate_product_data({"name": "", "description": "", "rating": 7})

        assert 'Product name is required' in errors
        assert 'Product description is required' in errors
        assert 'Original price is required' in errors
        assert 'Category is required' in errors
        assert 'Rating must be a number between 0 and 5' in errors

    def test_length_limits(self):
        data = dict(VALID_PRODUCT, name="x" * 201, detailed_description="d" * 2001, features=["f" * 201])

        errors = validate_product_data(data)

        assert 'Product name must be less than 200 characters' in errors
        assert 'Detailed description must be less than 2000 characters' in errors
        assert 'Each feature must be less than 200 characters' in errors

    @pytest.mark.parametrize("url, expected", [
        ("https://cdn.example.com/a.png", True),
        ("http://cdn.example.com/a.JPEG", True),
        ("https://cdn.example.com/a.txt", False),
        ("ftp://cdn.example.com/a.png", False),
        ("not a url", False),
    ])
    def test_image_urls(self, url, expected):
        assert is_valid_image_url(url) is expected

    @pytest.mark.parametrize("url, expected", [
        ("https://www.youtube.com/watch?v=abc", True),
        ("https://youtu.be/abc", True),
        ("https://vimeo.com/123", True),
        ("https://cdn.example.com/demo.mp4", True),
        ("https://cdn.example.com/demo.html", False),
    ])
    def test_video_urls(self, url, expected):
        assert is_valid_video_url(url) is expected

    def test_sanitize_strips_active_content(self):
        dirty = 'Hello<script>alert(1)</script> <a href="javascript:x" onclick="steal()">link</a>'

        clean = sanitize_html(dirty)

        assert '<script' not in clean
        assert 'javascript:' not in clean
        assert 'onclick' not in clean
        assert clean.startswith('Hello')


class TestCatalogService:

    def setup_method(self):
        self.repository = MagicMock()
        self.service = CatalogService(repository=self.repository, cache_ttl=300)

    def test_unfiltered_list_is_cached(self, sample_product):
        self.repository.find_all.return_value = ([sample_product], 1)

        first, total = self.service.list_products()
        second, _ = self.service.list_products()

        assert total == 1
        assert first == second == [sample_product]
        self.repository.find_all.assert_called_once()

    def test_filtered_list_bypasses_cache(self, sample_product):
        self.repository.find_all.return_value = ([sample_product], 1)

        self.service.list_products(category="Streaming")
        self.service.list_products(category="Streaming")

        assert self.repository.find_all.call_count == 2

    def test_list_pages_the_cached_products(self):
        products = [Product(id=str(i), name=f"P{i}") for i in range(5)]
        self.repository.find_all.return_value = (products, 5)

        page, total = self.service.list_products(limit=2, offset=2)

        assert total == 5
        assert [p.id for p in page] == ["2", "3"]

    @patch('toolsy.services.catalog_service.record_admin_action')
    def test_create_product_slugifies_and_invalidates_cache(self, mock_audit, sample_product):
        self.repository.find_all.return_value = ([], 0)
        self.repository.slug_exists.return_value = False
        self.repository.create.return_value = sample_product
        self.service.list_products()

        self.service.create_product(dict(VALID_PRODUCT))

        written = self.repository.create.call_args[0][0]
        assert written["slug"] == "chatgpt-plus-shared"
        # cache was dropped, so the next list reloads
        self.service.list_products()
        assert self.repository.find_all.call_count == 2
        mock_audit.assert_called_once()

    def test_create_product_reports_validation_errors(self):
        with pytest.raises(ValueError) as exc:
            self.service.create_product({"name": "", "description": ""})

        assert "Product name is required" in str(exc.value)
        assert "Category is required" in str(exc.value)
        self.repository.create.assert_not_called()

    def test_create_product_rejects_taken_slug(self):
        self.repository.slug_exists.return_value = True

        with pytest.raises(ValueError, match="already exists"):
            self.service.create_product(dict(VALID_PRODUCT))

    @patch('toolsy.services.catalog_service.record_admin_action')
    def test_update_without_changes_returns_current(self, mock_audit, sample_product):
        self.repository.find_by_id.return_value = sample_product

        result = self.service.update_product(sample_product.id, {"name": sample_product.name})

        assert result is sample_product
        self.repository.update.assert_not_called()

    @patch('toolsy.services.catalog_service.record_admin_action')
    def test_update_name_regenerates_slug(self, mock_audit, sample_product):
        self.repository.find_by_id.return_value = sample_product
        self.repository.slug_exists.return_value = False
        self.repository.update.return_value = sample_product

        self.service.update_product(sample_product.id, {"name": "Netflix Ultra"})

        changes = self.repository.update.call_args[0][1]
        assert changes["slug"] == "netflix-ultra"

    def test_update_missing_product_returns_none(self):
        self.repository.find_by_id.return_value = None

        assert self.service.update_product("missing", {"name": "X"}) is None

    def test_replace_pricing_plans_rejects_duplicate_type(self, sample_product):
        self.repository.find_by_id.return_value = sample_product
        plans = [PricingPlan(plan_type="shared"), PricingPlan(plan_type="shared")]

        with pytest.raises(ValueError):
            self.service.replace_pricing_plans(sample_product.id, plans)

    @patch('toolsy.services.catalog_service.record_admin_action')
    def test_replace_images_invalidates_cache(self, mock_audit, sample_product):
        self.repository.find_all.return_value = ([sample_product], 1)
        self.repository.replace_images.return_value = []
        self.service.list_products()

        self.service.replace_images(sample_product.id, [
            ProductImage(image_url="https://cdn.toolsy.store/netflix-2.webp", alt_text="Profiles")
        ])

        self.service.list_products()
        assert self.repository.find_all.call_count == 2
