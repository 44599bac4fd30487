"""
Unit tests for CartRepository and FinanceRepository writes

Author: TM3
Date: 2026-03-10
"""
import pytest
from unittest.mock import patch

from psycopg2.extras import Json

from toolsy.domain.cart import Cart, CartItem, CartProduct
from toolsy.repositories.cart_repository import CartRepository
from toolsy.repositories.finance_repository import FinanceRepository


CART_ID = "44444444-4444-4444-4444-444444444444"


class TestCartRepository:

    @patch('toolsy.repositories.cart_repository.get_db_connection_dict')
    def test_create_inserts_empty_cart(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'id': CART_ID, 'items': [], 'currency': 'NGN',
                                             'created_at': None, 'updated_at': None}

        cart = CartRepository().create()

        assert cart.id == CART_ID
        assert cart.items == []
        params = mock_cursor.execute.call_args[0][1]
        assert isinstance(params[0], Json)
        assert params[1] == 'NGN'
        mock_conn.commit.assert_called_once()

    @patch('toolsy.repositories.cart_repository.get_db_connection_dict')
    def test_find_by_id_parses_items(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {
            'id': CART_ID,
            'items': [{'product': {'id': 'p1', 'name': 'Netflix Premium', 'price': 4000}, 'quantity': 2}],
            'currency': 'NGN',
            'created_at': None,
            'updated_at': None,
        }

        cart = CartRepository().find_by_id(CART_ID)

        assert cart.items[0].product.name == 'Netflix Premium'
        assert cart.items[0].line_total == 8000

    @patch('toolsy.repositories.cart_repository.get_db_connection_dict')
    def test_find_by_id_missing(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        assert CartRepository().find_by_id(CART_ID) is None
        mock_conn.close.assert_called_once()

    @patch('toolsy.repositories.cart_repository.get_db_connection_dict')
    def test_save_writes_items_as_json(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None
        cart = Cart(id=CART_ID, items=[
            CartItem(product=CartProduct(id='p1', name='Netflix Premium', price=4000, custom_price=3500), quantity=1)
        ])

        saved = CartRepository().save(cart)

        items_json, currency, cart_id = mock_cursor.execute.call_args[0][1]
        assert items_json.adapted[0]['product']['custom_price'] == 3500
        assert (currency, cart_id) == ('NGN', CART_ID)
        # No row returned: the in-memory cart comes back unchanged
        assert saved is cart

    @patch('toolsy.repositories.cart_repository.get_db_connection_dict')
    def test_save_rolls_back_on_error(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.execute.side_effect = Exception("connection lost")

        with pytest.raises(Exception):
            CartRepository().save(Cart(id=CART_ID))

        mock_conn.rollback.assert_called_once()


class TestFinanceRepositoryWrites:

    @patch('toolsy.repositories.finance_repository.get_db_connection_dict')
    def test_vendor_transaction_for_unknown_vendor(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = None

        with pytest.raises(LookupError):
            FinanceRepository().create_vendor_transaction({'vendor_id': 'v-missing', 'amount': 1000})

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        assert mock_cursor.execute.call_count == 1
