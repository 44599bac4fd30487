"""
Cart Domain Models

A cart holds one line per product. Each line carries the chosen plan
(subscription type and period), the resolved unit price and an optional
custom price that overrides it.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class CartProduct(BaseModel):
    """Product snapshot stored inside a cart line"""
    id: str
    name: str
    category: Optional[str] = None
    subscription_type: str = 'shared'
    subscription_period: str = '1_month'
    price: float = Field(0, ge=0)
    custom_price: Optional[float] = Field(None, ge=0)
    main_image_url: Optional[str] = None

    @property
    def effective_price(self) -> float:
        """custom_price wins over price unless it is missing or zero"""
        return self.custom_price or self.price


class CartItem(BaseModel):
    product: CartProduct
    quantity: int = Field(1, ge=1)

    @property
    def line_total(self) -> float:
        return self.product.effective_price * self.quantity


class Cart(BaseModel):
    """
    Shopping cart

    Invariants:
        - at most one line per product id
        - every quantity is >= 1 (lines reaching 0 are removed)
    """
    id: Optional[str] = None
    items: List[CartItem] = Field(default_factory=list)
    currency: str = 'NGN'
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    def add(self, product: CartProduct) -> None:
        """
        Add a product.

        A product already in the cart keeps its quantity and takes the new
        plan details; a new product starts at quantity 1.
        """
        existing = self._find(product.id)
        if existing:
            existing.product = product
            return
        self.items.append(CartItem(product=product, quantity=1))

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product.id != product_id]

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line"""
        if quantity <= 0:
            self.remove(product_id)
            return
        existing = self._find(product_id)
        if existing:
            existing.quantity = quantity

    def update_plan(
        self,
        product_id: str,
        subscription_type: str,
        subscription_period: str,
        new_price: float
    ) -> None:
        existing = self._find(product_id)
        if not existing:
            return
        existing.product = existing.product.model_copy(update={
            'subscription_type': subscription_type,
            'subscription_period': subscription_period,
            'price': new_price,
            'custom_price': new_price,
        })

    def clear(self) -> None:
        self.items = []

    def is_in_cart(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.line_total for item in self.items)

    def to_dict(self) -> dict:
        data = self.model_dump(mode='json')
        data['total_items'] = self.total_items
        data['total_price'] = self.total_price
        return data
