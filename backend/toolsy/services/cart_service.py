"""
Cart Service
Server-side carts priced through the pricing service

Clients send product id, subscription type and period; the unit price is
always resolved here so a posted price is never trusted.

Author: TM3
Date: 2026-03-06
"""
import logging
from typing import Optional

from toolsy.core.config import settings
from toolsy.domain.cart import Cart, CartProduct
from toolsy.repositories.cart_repository import CartRepository
from toolsy.repositories.product_repository import ProductRepository
from toolsy.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


class CartService:

    def __init__(
        self,
        cart_repository: Optional[CartRepository] = None,
        product_repository: Optional[ProductRepository] = None
    ):
        self.carts = cart_repository or CartRepository()
        self.products = product_repository or ProductRepository()
        self.pricing = PricingService()

    def _build_cart_product(
        self,
        product_id: str,
        subscription_type: str,
        subscription_period: str
    ) -> CartProduct:
        product = self.products.find_by_id(product_id)
        if not product:
            raise LookupError(f"Product {product_id} not found")

        price = self.pricing.resolve_price(product, subscription_type, subscription_period)
        return CartProduct(
            id=product.id,
            name=product.name,
            category=product.category,
            subscription_type=subscription_type,
            subscription_period=subscription_period,
            price=price,
            main_image_url=product.main_image_url,
        )

    def _require_cart(self, cart_id: str) -> Cart:
        cart = self.carts.find_by_id(cart_id)
        if not cart:
            raise LookupError(f"Cart {cart_id} not found")
        return cart

    def create_cart(self, currency: Optional[str] = None) -> Cart:
        cart = self.carts.create(currency or settings.DEFAULT_CURRENCY)
        logger.debug(f"Cart created: {cart.id}")
        return cart

    def get_cart(self, cart_id: str) -> Optional[Cart]:
        return self.carts.find_by_id(cart_id)

    def add_item(
        self,
        cart_id: str,
        product_id: str,
        subscription_type: str = 'shared',
        subscription_period: str = '1_month'
    ) -> Cart:
        """
        Add a product (or change the plan of one already in the cart)

        Raises:
            LookupError: cart or product missing
            ValueError: unknown type or period
        """
        cart = self._require_cart(cart_id)
        cart.add(self._build_cart_product(product_id, subscription_type, subscription_period))
        return self.carts.save(cart)

    def update_quantity(self, cart_id: str, product_id: str, quantity: int) -> Cart:
        cart = self._require_cart(cart_id)
        cart.update_quantity(product_id, quantity)
        return self.carts.save(cart)

    def update_plan(
        self,
        cart_id: str,
        product_id: str,
        subscription_type: str,
        subscription_period: str
    ) -> Cart:
        cart = self._require_cart(cart_id)
        if not cart.is_in_cart(product_id):
            raise LookupError(f"Product {product_id} is not in cart {cart_id}")

        priced = self._build_cart_product(product_id, subscription_type, subscription_period)
        cart.update_plan(product_id, subscription_type, subscription_period, priced.price)
        return self.carts.save(cart)

    def remove_item(self, cart_id: str, product_id: str) -> Cart:
        cart = self._require_cart(cart_id)
        cart.remove(product_id)
        return self.carts.save(cart)

    def clear(self, cart_id: str) -> Cart:
        cart = self._require_cart(cart_id)
        cart.clear()
        return self.carts.save(cart)


def get_cart_service() -> CartService:
    return CartService()
