"""
Checkout Service
Manual-fulfillment checkout: codes are issued here, payment happens on WhatsApp

Flow:
1. Validate the customer details and collect the lines (cart or explicit items)
2. Price every line server-side
3. Write the purchase (auth code, purchase request, product codes) in one transaction
4. Build the WhatsApp message the customer sends to the store

Author: TM3
Date: 2026-03-06
"""
import re
import secrets
import string
import logging
from typing import List, Optional
from urllib.parse import quote

from toolsy.core.config import settings
from toolsy.core.validation import is_valid_email
from toolsy.domain.checkout import (
    CheckoutItem,
    CheckoutRequest,
    CheckoutResult,
    IssuedProductCode,
    PricedItem,
)
from toolsy.repositories.cart_repository import CartRepository
from toolsy.repositories.product_repository import ProductRepository
from toolsy.repositories.purchase_repository import PurchaseRepository
from toolsy.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
USER_CODE_LENGTH = 8
PRODUCT_CODE_SUFFIX_LENGTH = 6
DEFAULT_CODE_PREFIX = 'PRD'

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

_NON_ALPHANUMERIC = re.compile(r'[^A-Za-z0-9]')


def generate_user_code() -> str:
    """8 random characters from A-Z0-9"""
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(USER_CODE_LENGTH))


def generate_product_code(product_name: str) -> str:
    """
    <PREFIX>-<6 random A-Z0-9>

    PREFIX is the first three alphanumerics of the name, upper-cased,
    or PRD when the name has none.
    """
    prefix = _NON_ALPHANUMERIC.sub('', product_name or '')[:3].upper() or DEFAULT_CODE_PREFIX
    suffix = ''.join(secrets.choice(CODE_ALPHABET) for _ in range(PRODUCT_CODE_SUFFIX_LENGTH))
    return f"{prefix}-{suffix}"


def validate_customer(user_name: Optional[str], user_email: Optional[str]) -> List[str]:
    """All problems with the customer details, empty when valid"""
    errors = []
    name = (user_name or '').strip()
    email = (user_email or '').strip()

    if not name:
        errors.append("Name is required")
    elif not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        errors.append(f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")

    if not email:
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")

    return errors


def build_whatsapp_message(result: CheckoutResult) -> str:
    """Text the customer sends to the store to get their codes approved"""
    product_codes_text = '\n'.join(
        f"• {code.product_code} ({code.product_name})" for code in result.product_codes
    )
    customer_type = 'Returning Customer' if result.is_returning_user else 'New Customer'

    return (
        "Hi! I just completed my purchase and here are my details:\n"
        "\n"
        f"{customer_type}\n"
        f"User Code: {result.user_code}\n"
        f"Email: {result.user_email}\n"
        f"Name: {result.user_name}\n"
        "\n"
        "Product Codes:\n"
        f"{product_codes_text}\n"
        "\n"
        f"Total: {result.total_amount} {result.currency}\n"
        "\n"
        "Please approve my product codes and provide access. Thank you!"
    )


def build_whatsapp_url(message: str, number: Optional[str] = None) -> str:
    return f"https://wa.me/{number or settings.WHATSAPP_ORDER_NUMBER}?text={quote(message, safe='')}"


class CheckoutService:

    def __init__(
        self,
        purchase_repository: Optional[PurchaseRepository] = None,
        product_repository: Optional[ProductRepository] = None,
        cart_repository: Optional[CartRepository] = None
    ):
        self.purchases = purchase_repository or PurchaseRepository()
        self.products = product_repository or ProductRepository()
        self.carts = cart_repository or CartRepository()
        self.pricing = PricingService()

    def _items_from_cart(self, cart_id: str) -> List[CheckoutItem]:
        cart = self.carts.find_by_id(cart_id)
        if not cart:
            raise LookupError(f"Cart {cart_id} not found")
        return [
            CheckoutItem(
                product_id=item.product.id,
                subscription_type=item.product.subscription_type,
                subscription_period=item.product.subscription_period,
                quantity=item.quantity,
            )
            for item in cart.items
        ]

    def price_items(self, items: List[CheckoutItem]) -> List[PricedItem]:
        """
        Resolve every line's unit price

        Raises:
            LookupError: a product does not exist
            ValueError: unknown type or period
        """
        priced = []
        for item in items:
            product = self.products.find_by_id(item.product_id)
            if not product:
                raise LookupError(f"Product {item.product_id} not found")
            priced.append(PricedItem(
                product_id=product.id,
                product_name=product.name,
                subscription_type=item.subscription_type,
                subscription_period=item.subscription_period,
                quantity=item.quantity,
                unit_price=self.pricing.resolve_price(
                    product, item.subscription_type, item.subscription_period
                ),
            ))
        return priced

    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        """
        Run a checkout

        Raises:
            ValueError: invalid customer details or no items
            LookupError: cart or product missing
        """
        errors = validate_customer(request.user_name, request.user_email)
        if errors:
            raise ValueError("; ".join(errors))

        user_name = request.user_name.strip()
        user_email = request.user_email.strip().lower()
        currency = request.currency or settings.DEFAULT_CURRENCY

        items = list(request.items)
        if request.cart_id:
            items.extend(self._items_from_cart(request.cart_id))
        if not items:
            raise ValueError("Cart is empty")

        priced = self.price_items(items)

        created = self.purchases.create_purchase(
            user_name=user_name,
            user_email=user_email,
            items=priced,
            currency=currency,
            generate_user_code=generate_user_code,
            generate_product_code=generate_product_code,
        )

        result = CheckoutResult(
            purchase_request_id=created['purchase_request_id'],
            user_code=created['user_code'],
            user_name=user_name,
            user_email=user_email,
            is_returning_user=created['is_returning_user'],
            product_codes=[IssuedProductCode(**code) for code in created['product_codes']],
            total_amount=created['total_amount'],
            currency=currency,
        )
        result.whatsapp_message = build_whatsapp_message(result)
        result.whatsapp_url = build_whatsapp_url(result.whatsapp_message)

        if request.cart_id:
            cart = self.carts.find_by_id(request.cart_id)
            if cart:
                cart.clear()
                self.carts.save(cart)

        logger.info(
            f"Checkout {result.purchase_request_id}: {len(result.product_codes)} codes, "
            f"{result.total_amount} {currency}, returning={result.is_returning_user}"
        )
        return result

    def mark_whatsapp_sent(self, purchase_request_id: str, user_code: str) -> bool:
        """The user code must match the purchase request's owner"""
        return self.purchases.mark_whatsapp_sent(purchase_request_id, user_code)


def get_checkout_service() -> CheckoutService:
    return CheckoutService()
