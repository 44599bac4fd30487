"""
Unit tests for PurchaseRepository.create_purchase

The cursor's fetchone results are scripted in the order the checkout
transaction asks for them.

Author: TM3
Date: 2026-03-10
"""
import pytest
from unittest.mock import MagicMock, patch

from toolsy.domain.checkout import PricedItem
from toolsy.repositories.purchase_repository import MAX_CODE_ATTEMPTS, PurchaseRepository, _unique_code


def priced_item(quantity=1):
    return PricedItem(
        product_id="p1",
        product_name="Netflix Premium",
        subscription_type="shared",
        subscription_period="1_month",
        quantity=quantity,
        unit_price=4000.0,
    )


def sql_calls(cursor, fragment):
    return [c for c in cursor.execute.call_args_list if fragment in c[0][0]]


class TestCreatePurchase:

    @patch('toolsy.repositories.purchase_repository.get_db_connection_dict')
    def test_new_customer_gets_auth_code_and_one_code_per_unit(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [
            None,               # no auth code for this email
            None,               # generated user code is unused
            {'id': 'a1'},       # INSERT user_auth_codes RETURNING id
            {'id': 'pr1'},      # INSERT purchase_requests RETURNING id
            None,               # first product code is unused
            None,               # second product code is unused
        ]
        product_codes = iter(["NET-AAAAAA", "NET-BBBBBB"])

        result = PurchaseRepository().create_purchase(
            "Ada Obi", "ada@example.com", [priced_item(quantity=2)], "NGN",
            generate_user_code=lambda: "AB12CD34",
            generate_product_code=lambda name: next(product_codes),
        )

        assert result == {
            "purchase_request_id": "pr1",
            "user_code": "AB12CD34",
            "is_returning_user": False,
            "product_codes": [
                {"product_code": "NET-AAAAAA", "product_id": "p1", "product_name": "Netflix Premium"},
                {"product_code": "NET-BBBBBB", "product_id": "p1", "product_name": "Netflix Premium"},
            ],
            "total_amount": 8000.0,
        }
        assert len(sql_calls(mock_cursor, "INSERT INTO user_auth_codes")) == 1
        assert len(sql_calls(mock_cursor, "INSERT INTO purchase_request_items")) == 1
        assert len(sql_calls(mock_cursor, "INSERT INTO product_codes")) == 2
        mock_conn.commit.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('toolsy.repositories.purchase_repository.get_db_connection_dict')
    def test_returning_customer_reuses_auth_code(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [
            {'id': 'a1', 'code': 'ZZ99YY88'},
            {'id': 'pr1'},
            None,
        ]
        generate_user_code = MagicMock()

        result = PurchaseRepository().create_purchase(
            "Ada Obi", "ada@example.com", [priced_item()], "NGN",
            generate_user_code=generate_user_code,
            generate_product_code=lambda name: "NET-AAAAAA",
        )

        assert result["is_returning_user"] is True
        assert result["user_code"] == "ZZ99YY88"
        generate_user_code.assert_not_called()
        assert sql_calls(mock_cursor, "INSERT INTO user_auth_codes") == []
        purchase_params = sql_calls(mock_cursor, "INSERT INTO purchase_requests")[0][0][1]
        assert purchase_params == ('a1', "ada@example.com", "Ada Obi", 4000.0, "NGN", True)

    @patch('toolsy.repositories.purchase_repository.get_db_connection_dict')
    def test_failure_rolls_back_everything(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [{'id': 'a1', 'code': 'ZZ99YY88'}, {'id': 'pr1'}]
        mock_cursor.execute.side_effect = [None, None, Exception("foreign key violation")]

        with pytest.raises(Exception, match="foreign key"):
            PurchaseRepository().create_purchase(
                "Ada Obi", "ada@example.com", [priced_item()], "NGN",
                generate_user_code=lambda: "AB12CD34",
                generate_product_code=lambda name: "NET-AAAAAA",
            )

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()


class TestUniqueCode:

    def test_retries_on_collision(self):
        cursor = MagicMock()
        cursor.fetchone.side_effect = [{'?column?': 1}, None]
        candidates = iter(["TAKEN001", "FREE0002"])

        code = _unique_code(cursor, 'user_auth_codes', 'code', lambda: next(candidates))

        assert code == "FREE0002"
        assert cursor.execute.call_count == 2

    def test_gives_up_after_max_attempts(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = {'?column?': 1}

        with pytest.raises(RuntimeError):
            _unique_code(cursor, 'product_codes', 'product_code', lambda: "NET-AAAAAA")

        assert cursor.execute.call_count == MAX_CODE_ATTEMPTS
