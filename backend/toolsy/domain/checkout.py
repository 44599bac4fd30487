"""
Checkout Domain Models

Checkout does not take payment. It issues an auth code (or reuses the
customer's existing one), one product code per unit bought, and a WhatsApp
message the customer sends to finish the order with a human.

Author: TM3
Date: 2026-03-03
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class CheckoutItem(BaseModel):
    product_id: str
    subscription_type: str = 'shared'
    subscription_period: str = '1_month'
    quantity: int = Field(1, ge=1, le=20)


class CheckoutRequest(BaseModel):
    """Either cart_id or items must be given"""
    user_name: str
    user_email: str
    cart_id: Optional[str] = None
    items: List[CheckoutItem] = Field(default_factory=list)
    currency: Optional[str] = None


class PricedItem(BaseModel):
    """Checkout line with its server-side price"""
    product_id: str
    product_name: str
    subscription_type: str
    subscription_period: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity


class IssuedProductCode(BaseModel):
    product_code: str
    product_id: str
    product_name: str


class CheckoutResult(BaseModel):
    success: bool = True
    purchase_request_id: Optional[str] = None
    user_code: str
    user_name: str
    user_email: str
    is_returning_user: bool
    product_codes: List[IssuedProductCode] = Field(default_factory=list)
    total_amount: float
    currency: str = 'NGN'
    whatsapp_message: Optional[str] = None
    whatsapp_url: Optional[str] = None
