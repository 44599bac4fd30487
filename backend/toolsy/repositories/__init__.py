"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
Date: 2026-03-03
"""
from toolsy.repositories.product_repository import ProductRepository
from toolsy.repositories.testimonial_repository import TestimonialRepository
from toolsy.repositories.cart_repository import CartRepository
from toolsy.repositories.purchase_repository import PurchaseRepository
from toolsy.repositories.product_code_repository import ProductCodeRepository
from toolsy.repositories.subscription_repository import SubscriptionRepository
from toolsy.repositories.refund_repository import RefundRepository
from toolsy.repositories.finance_repository import FinanceRepository
from toolsy.repositories.admin_repository import AdminRepository

__all__ = [
    'ProductRepository',
    'TestimonialRepository',
    'CartRepository',
    'PurchaseRepository',
    'ProductCodeRepository',
    'SubscriptionRepository',
    'RefundRepository',
    'FinanceRepository',
    'AdminRepository',
]
