"""
Unit tests for the Cart domain model

Author: TM3
Date: 2026-03-10
"""
import pytest
from pydantic import ValidationError

from toolsy.domain.cart import Cart, CartItem, CartProduct


def make_product(product_id="p1", price=1000.0, custom_price=None, **kwargs):
    return CartProduct(id=product_id, name=f"Product {product_id}", price=price, custom_price=custom_price, **kwargs)


class TestCartAdd:
    """Adding products"""

    def test_adding_new_product_increases_total_items_by_one(self):
        cart = Cart()
        cart.add(make_product("p1"))
        before = cart.total_items

        cart.add(make_product("p2"))

        assert cart.total_items == before + 1
        assert len(cart.items) == 2

    def test_new_product_starts_at_quantity_one(self):
        cart = Cart()
        cart.add(make_product("p1"))

        assert cart.items[0].quantity == 1

    def test_readding_product_keeps_quantity_and_takes_new_plan(self):
        cart = Cart()
        cart.add(make_product("p1", price=1000))
        cart.update_quantity("p1", 3)

        cart.add(make_product("p1", price=2500, subscription_type="private", subscription_period="3_months"))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.items[0].product.subscription_type == "private"
        assert cart.items[0].product.price == 2500


class TestCartQuantity:

    def test_update_quantity_sets_quantity(self):
        cart = Cart()
        cart.add(make_product("p1"))

        cart.update_quantity("p1", 5)

        assert cart.total_items == 5

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_update_quantity_zero_or_less_removes_line(self, quantity):
        cart = Cart()
        cart.add(make_product("p1"))
        cart.add(make_product("p2"))

        cart.update_quantity("p1", quantity)

        assert not cart.is_in_cart("p1")
        assert cart.is_in_cart("p2")

    def test_update_quantity_of_missing_product_is_ignored(self):
        cart = Cart()
        cart.add(make_product("p1"))

        cart.update_quantity("missing", 4)

        assert cart.total_items == 1

    def test_item_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            CartItem(product=make_product("p1"), quantity=0)


class TestCartPlanAndTotals:

    def test_update_plan_sets_price_and_custom_price(self):
        cart = Cart()
        cart.add(make_product("p1", price=1000))

        cart.update_plan("p1", "semi_private", "6_months", 6750)

        product = cart.items[0].product
        assert product.subscription_type == "semi_private"
        assert product.subscription_period == "6_months"
        assert product.price == 6750
        assert product.custom_price == 6750

    def test_total_price_uses_custom_price_when_set(self):
        cart = Cart()
        cart.add(make_product("p1", price=1000))
        cart.add(make_product("p2", price=2000, custom_price=1500))
        cart.update_quantity("p1", 2)
        cart.update_quantity("p2", 3)

        # 1000 * 2 + 1500 * 3
        assert cart.total_price == 6500

    def test_zero_custom_price_falls_back_to_price(self):
        cart = Cart()
        cart.add(make_product("p1", price=500, custom_price=0))

        assert cart.total_price == 500

    def test_clear_empties_cart(self):
        cart = Cart()
        cart.add(make_product("p1"))
        cart.add(make_product("p2"))

        cart.clear()

        assert cart.items == []
        assert cart.total_items == 0
        assert cart.total_price == 0

    def test_remove_drops_only_that_product(self):
        cart = Cart()
        cart.add(make_product("p1"))
        cart.add(make_product("p2"))

        cart.remove("p1")

        assert [item.product.id for item in cart.items] == ["p2"]

    def test_to_dict_includes_totals(self):
        cart = Cart(id="c1")
        cart.add(make_product("p1", price=1200))
        cart.update_quantity("p1", 2)

        data = cart.to_dict()

        assert data["id"] == "c1"
        assert data["total_items"] == 2
        assert data["total_price"] == 2400
        assert data["items"][0]["product"]["id"] == "p1"
