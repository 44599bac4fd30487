"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2026-03-10
"""
import pytest
from unittest.mock import patch, MagicMock

from toolsy.repositories.product_repository import ProductRepository
from toolsy.domain.product import Product, PricingPlan


PLAN_ROW = {
    'id': "22222222-2222-2222-2222-222222222222",
    'product_id': "11111111-1111-1111-1111-111111111111",
    'plan_type': 'shared',
    'is_enabled': True,
    'price': None,
    'monthly_price': "₦4,000",
    'yearly_price': "₦40,000",
    'description': None,
}


class TestProductRepository:
    """Test ProductRepository methods"""

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_product_with_plans(self, mock_get_conn, sample_product_row):
        """Test find_by_id returns a Product domain model with its pricing plans"""
        # Arrange: Mock database connection
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor

        mock_cursor.fetchone.return_value = sample_product_row
        mock_cursor.fetchall.return_value = [PLAN_ROW]

        # Act
        repo = ProductRepository()
        product = repo.find_by_id(sample_product_row['id'])

        # Assert
        assert isinstance(product, Product)
        assert product.name == 'Netflix Premium'
        assert product.price == "₦4,500"
        assert product.features == ["4K UHD", "4 screens"]
        assert product.pricing_plans[0].plan_type == 'shared'
        assert product.pricing_plans[0].monthly_price == "₦4,000"

        # Product query, then plans query
        assert mock_cursor.execute.call_count == 2
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_find_by_id_returns_none_when_not_found(self, mock_get_conn, mock_db):
        """Test find_by_id returns None when product doesn't exist"""
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        product = ProductRepository().find_by_id("missing")

        assert product is None
        mock_cursor.execute.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_find_all_attaches_plans_and_returns_total(self, mock_get_conn, mock_db, sample_product_row):
        """Test find_all returns products, their plans and the total count"""
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn

        second_row = dict(sample_product_row, id="33333333-3333-3333-3333-333333333333",
                          name="Spotify Family", slug="spotify-family", category="Music")
        mock_cursor.fetchone.return_value = {'total': 2}
        mock_cursor.fetchall.side_effect = [
            [sample_product_row, second_row],  # Products query
            [PLAN_ROW],                        # Plans query
        ]

        products, total = ProductRepository().find_all(search="netflix", limit=10)

        assert total == 2
        assert [p.slug for p in products] == ["netflix-premium", "spotify-family"]
        assert len(products[0].pricing_plans) == 1
        assert products[1].pricing_plans == []

        count_sql, count_params = mock_cursor.execute.call_args_list[0][0]
        assert "ILIKE" in count_sql
        assert count_params == ["%netflix%", "%netflix%"]
        _, list_params = mock_cursor.execute.call_args_list[1][0]
        assert list_params[-2:] == [10, 0]

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_find_all_empty_skips_plans_query(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'total': 0}
        mock_cursor.fetchall.return_value = []

        products, total = ProductRepository().find_all(category="Gaming")

        assert (products, total) == ([], 0)
        assert mock_cursor.execute.call_count == 2

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_create_commits(self, mock_get_conn, mock_db, sample_product_row):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = sample_product_row

        product = ProductRepository().create({
            'name': 'Netflix Premium', 'slug': 'netflix-premium', 'price': '₦4,500', 'ignored': 'x'
        })

        assert product.slug == 'netflix-premium'
        sql, params = mock_cursor.execute.call_args[0]
        assert "INSERT INTO products (name, slug, price)" in sql
        assert params == ['Netflix Premium', 'netflix-premium', '₦4,500']
        mock_conn.commit.assert_called_once()

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_create_rolls_back_on_error(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.execute.side_effect = Exception("duplicate key value violates unique constraint")

        with pytest.raises(Exception):
            ProductRepository().create({'name': 'Netflix Premium', 'slug': 'netflix-premium'})

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_delete_reports_missing_product(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.rowcount = 0

        assert ProductRepository().delete("missing") is False

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_replace_pricing_plans_deletes_then_inserts(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = PLAN_ROW

        saved = ProductRepository().replace_pricing_plans(
            PLAN_ROW['product_id'],
            [PricingPlan(plan_type='shared', monthly_price="₦4,000", yearly_price="₦40,000")]
        )

        assert len(saved) == 1
        assert mock_cursor.execute.call_args_list[0][0][0].startswith("DELETE FROM pricing_plans")
        assert mock_cursor.execute.call_count == 2
        mock_conn.commit.assert_called_once()

    @patch('toolsy.repositories.product_repository.get_db_connection_dict')
    def test_slug_exists_excludes_own_id(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        assert ProductRepository().slug_exists("netflix-premium", exclude_id="p1") is False
        assert mock_cursor.execute.call_args[0][1] == ("netflix-premium", "p1")
