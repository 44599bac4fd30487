"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2026-03-02
"""
from toolsy.domain.product import Product, PricingPlan, ProductImage
from toolsy.domain.cart import Cart, CartItem, CartProduct
from toolsy.domain.checkout import CheckoutRequest, CheckoutResult
from toolsy.domain.subscription import AuthCode, Subscription, ProductCode, SubscriptionRefundRequest
from toolsy.domain.testimonial import Testimonial
from toolsy.domain.refund import RefundTicket
from toolsy.domain.finance import (
    IncomingPayment,
    VendorProfile,
    VendorTransaction,
    FinancialAdjustment,
    FinancialSummary,
)

__all__ = [
    'Product', 'PricingPlan', 'ProductImage',
    'Cart', 'CartItem', 'CartProduct',
    'CheckoutRequest', 'CheckoutResult',
    'AuthCode', 'Subscription', 'ProductCode', 'SubscriptionRefundRequest',
    'Testimonial',
    'RefundTicket',
    'IncomingPayment', 'VendorProfile', 'VendorTransaction',
    'FinancialAdjustment', 'FinancialSummary',
]
