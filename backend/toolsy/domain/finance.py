"""
Finance Domain Models

Money coming in (customer payments), money going out (vendor transactions)
and manual adjustments such as refunds.

Author: TM3
Date: 2026-03-03
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


PAYMENT_STATUSES = ('pending', 'confirmed', 'failed', 'refunded')
PAYMENT_METHODS = ('bank_transfer', 'card', 'cash', 'easypaisa', 'jazzcash')
VENDOR_PAYMENT_STATUSES = ('pending', 'paid', 'cancelled')
ADJUSTMENT_TYPES = ('refund', 'chargeback', 'correction', 'bonus', 'fee')


def _decimals_to_float(data: dict, fields) -> dict:
    for field in fields:
        if data.get(field) is not None:
            data[field] = float(data[field])
    return data


class IncomingPayment(BaseModel):
    """Payment received from a customer (recorded by hand from WhatsApp proof)"""
    id: str
    customer_name: str
    customer_email: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    currency: str = 'NGN'
    payment_method: Optional[str] = None
    payment_status: str = 'pending'
    payment_proof_url: Optional[str] = None
    transaction_id: Optional[str] = None
    product_id: Optional[str] = None
    subscription_id: Optional[str] = None
    user_auth_code_id: Optional[str] = None
    verified_by: Optional[str] = None
    admin_notes: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return _decimals_to_float(self.model_dump(mode='json'), ['amount'])


class IncomingPaymentCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    currency: str = 'NGN'
    payment_method: str
    payment_proof_url: Optional[str] = None
    transaction_id: Optional[str] = None
    product_id: Optional[str] = None
    subscription_id: Optional[str] = None
    user_auth_code_id: Optional[str] = None
    admin_notes: Optional[str] = None
    payment_date: Optional[datetime] = None


class VendorProfile(BaseModel):
    """Supplier of the shared accounts the store resells"""
    id: str
    vendor_name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None
    account_details: Optional[dict] = None
    products_supplied: List[str] = Field(default_factory=list)
    total_due: Decimal = Decimal('0')
    total_paid: Decimal = Decimal('0')
    next_payment_date: Optional[datetime] = None
    is_active: bool = True
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return _decimals_to_float(self.model_dump(mode='json'), ['total_due', 'total_paid'])


class VendorProfileCreate(BaseModel):
    vendor_name: str = Field(..., min_length=1)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None
    account_details: Optional[dict] = None
    products_supplied: List[str] = Field(default_factory=list)
    next_payment_date: Optional[datetime] = None
    notes: Optional[str] = None


class VendorTransaction(BaseModel):
    id: str
    vendor_id: str
    vendor_name: Optional[str] = None
    amount: Decimal
    currency: str = 'NGN'
    transaction_type: str = 'payment'
    payment_status: str = 'pending'
    due_date: Optional[datetime] = None
    payment_date: Optional[datetime] = None
    description: Optional[str] = None
    product_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return _decimals_to_float(self.model_dump(mode='json'), ['amount'])


class VendorTransactionCreate(BaseModel):
    vendor_id: str
    amount: Decimal = Field(..., gt=0)
    currency: str = 'NGN'
    transaction_type: str = 'payment'
    due_date: Optional[datetime] = None
    description: Optional[str] = None
    product_id: Optional[str] = None


class FinancialAdjustment(BaseModel):
    id: str
    adjustment_type: str
    amount: Decimal
    currency: str = 'NGN'
    reason: Optional[str] = None
    reference_id: Optional[str] = None
    reference_table: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return _decimals_to_float(self.model_dump(mode='json'), ['amount'])


class FinancialAdjustmentCreate(BaseModel):
    adjustment_type: str
    amount: Decimal = Field(..., gt=0)
    currency: str = 'NGN'
    reason: Optional[str] = None
    reference_id: Optional[str] = None
    reference_table: Optional[str] = None


class FinancialSummary(BaseModel):
    """
    Totals for a date range

    net_profit = total_income - total_expenses - total_refunds
    """
    total_income: float = 0
    total_expenses: float = 0
    total_refunds: float = 0
    net_profit: float = 0
    pending_payments: float = 0
    pending_vendor_payments: float = 0
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @classmethod
    def from_totals(cls, income, expenses, refunds, pending_payments, pending_vendor, start_date=None, end_date=None):
        income = float(income or 0)
        expenses = float(expenses or 0)
        refunds = float(refunds or 0)
        return cls(
            total_income=income,
            total_expenses=expenses,
            total_refunds=refunds,
            net_profit=income - expenses - refunds,
            pending_payments=float(pending_payments or 0),
            pending_vendor_payments=float(pending_vendor or 0),
            start_date=start_date,
            end_date=end_date,
        )
