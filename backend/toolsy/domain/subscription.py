"""
Subscription Domain Models

Customers are identified by an auth code rather than an account. Every unit
bought at checkout gets a product code; when the admin approves a product
code, a user subscription is created for the auth code that owns it.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


SUBSCRIPTION_TYPES = ('shared', 'semi_private', 'private')
SUBSCRIPTION_PERIODS = ('1_month', '3_months', '6_months', '1_year', '2_years', 'lifetime')
SUBSCRIPTION_STATUSES = ('active', 'expiring_soon', 'expired', 'cancelled')
PRODUCT_CODE_STATUSES = ('pending', 'approved', 'rejected')
REFUND_STATUSES = ('pending', 'approved', 'rejected', 'processed')


class AuthCode(BaseModel):
    """
    Portal access code

    Codes never expire; an admin deactivates them instead.
    """
    id: str
    code: str = Field(..., description="8 character A-Z0-9 code")
    user_name: str
    user_email: str
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionProduct(BaseModel):
    """Product summary joined onto a subscription"""
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    main_image_url: Optional[str] = None
    category: Optional[str] = None


class Subscription(BaseModel):
    """
    A customer's subscription to one product

    Fields:
        status: active, expiring_soon, expired or cancelled
        expiry_date: Derived from start_date and subscription_period
        username / password: Shared account credentials handed to the customer
        product_code_id: Product code the subscription was created from
    """
    id: str
    user_auth_code_id: str
    product_id: str
    product_code_id: Optional[str] = None
    subscription_type: str
    subscription_period: str
    status: str = 'active'
    start_date: datetime
    expiry_date: datetime
    auto_renew: bool = False
    notes: Optional[str] = None
    custom_price: Optional[Decimal] = None
    username: Optional[str] = None
    password: Optional[str] = None
    currency: str = 'NGN'
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    product: Optional[SubscriptionProduct] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(mode='json')
        if self.custom_price is not None:
            data['custom_price'] = float(self.custom_price)
        return data


class SubscriptionCreate(BaseModel):
    """Admin request to create a subscription by hand"""
    user_auth_code_id: str
    product_id: str
    subscription_type: str = 'shared'
    subscription_period: str = '1_month'
    start_date: Optional[datetime] = None
    auto_renew: bool = False
    notes: Optional[str] = None
    custom_price: Optional[Decimal] = None
    username: Optional[str] = None
    password: Optional[str] = None
    currency: str = 'NGN'


class SubscriptionUpdate(BaseModel):
    """Admin request to edit a subscription (only sent fields change)"""
    status: Optional[str] = None
    expiry_date: Optional[datetime] = None
    auto_renew: Optional[bool] = None
    notes: Optional[str] = None
    custom_price: Optional[Decimal] = None
    username: Optional[str] = None
    password: Optional[str] = None


class ProductCode(BaseModel):
    """
    Per-unit purchase code

    The customer sends these over WhatsApp; the admin approves or rejects them.
    """
    id: str
    product_code: str
    product_id: str
    user_auth_code_id: str
    purchase_request_id: Optional[str] = None
    price: Optional[Decimal] = None
    currency: str = 'NGN'
    subscription_type: str = 'shared'
    subscription_period: str = '1_month'
    status: str = 'pending'
    admin_notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    # From JOINs (optional)
    product_name: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_code: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(mode='json')
        if self.price is not None:
            data['price'] = float(self.price)
        return data


class SubscriptionRefundRequest(BaseModel):
    """Refund request raised from the portal for an owned subscription"""
    id: str
    subscription_id: str
    user_auth_code_id: str
    reason: str
    description: Optional[str] = None
    status: str = 'pending'
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_method: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    # From JOINs (optional)
    product_name: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(mode='json')
        if self.refund_amount is not None:
            data['refund_amount'] = float(self.refund_amount)
        return data


class ReceiptLine(BaseModel):
    product_id: str
    product_name: str
    category: Optional[str] = None
    subscription_type: str
    subscription_period: str
    plan_label: str = Field(..., description="e.g. 'SEMI PRIVATE - 3 Months'")
    amount: float


class Receipt(BaseModel):
    """
    Receipt data for one subscription

    Rendering (PDF/PNG) is left to the front end.

    Fields:
        receipt_number: RCP-<4 digits>, issued fresh on every request
        status: PAID, EXPIRING SOON, EXPIRED or CANCELLED
        total: Sum of line amounts (custom price, or the plan's catalog price)
    """
    receipt_number: str
    issued_at: datetime
    subscription_id: str
    customer_name: str
    customer_email: str
    auth_code: str
    start_date: datetime
    expiry_date: datetime
    status: str
    auto_renew: bool = False
    notes: Optional[str] = None
    lines: List[ReceiptLine]
    total: float
    currency: str = 'NGN'
    support_email: str

    def to_dict(self) -> dict:
        return self.model_dump(mode='json')
