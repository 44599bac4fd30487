"""
Finance API
Incoming payments, vendors, adjustments, summary and sales analytics

Author: TM3
Date: 2026-03-09
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from toolsy.api.dependencies import admin_context
from toolsy.domain.finance import (
    FinancialAdjustmentCreate,
    IncomingPaymentCreate,
    VendorProfileCreate,
    VendorTransactionCreate,
)
from toolsy.services.audit_service import AuditContext
from toolsy.services.finance_service import (
    DEFAULT_RANGE,
    FinanceService,
    get_finance_service,
    resolve_date_range,
)

router = APIRouter()


class PaymentStatusUpdate(BaseModel):
    payment_status: str
    admin_notes: Optional[str] = None


def _page(items, total, limit, offset):
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(items),
        "data": items
    }


# ============================================================================
# Incoming payments
# ============================================================================

@router.get("/payments")
async def get_payments(
    payment_status: Optional[str] = Query(None, description="pending, confirmed, failed or refunded"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        payments, total = service.repository.find_payments(
            payment_status=payment_status, limit=limit, offset=offset
        )
        return _page([p.to_dict() for p in payments], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching payments: {str(e)}")


@router.post("/payments", status_code=201)
async def record_payment(
    body: IncomingPaymentCreate,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        payment = service.record_payment(body.model_dump(), context=context)
        return {"status": "success", "data": payment.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error recording payment: {str(e)}")


@router.patch("/payments/{payment_id}")
async def update_payment_status(
    payment_id: str,
    body: PaymentStatusUpdate,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        payment = service.update_payment_status(
            payment_id, body.payment_status, admin_notes=body.admin_notes, context=context
        )
        if not payment:
            raise HTTPException(status_code=404, detail=f"Payment {payment_id} not found")
        return {"status": "success", "data": payment.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating payment: {str(e)}")


# ============================================================================
# Vendors
# ============================================================================

@router.get("/vendors")
async def get_vendors(
    is_active: Optional[bool] = Query(None),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        vendors = service.repository.find_vendors(is_active=is_active)
        return {"status": "success", "count": len(vendors), "data": [v.to_dict() for v in vendors]}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching vendors: {str(e)}")


@router.post("/vendors", status_code=201)
async def create_vendor(
    body: VendorProfileCreate,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        vendor = service.create_vendor(body.model_dump(), context=context)
        return {"status": "success", "data": vendor.to_dict()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating vendor: {str(e)}")


@router.get("/vendor-transactions")
async def get_vendor_transactions(
    vendor_id: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None, description="pending, paid or cancelled"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        transactions, total = service.repository.find_vendor_transactions(
            vendor_id=vendor_id, payment_status=payment_status, limit=limit, offset=offset
        )
        return _page([t.to_dict() for t in transactions], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching vendor transactions: {str(e)}")


@router.post("/vendor-transactions", status_code=201)
async def record_vendor_transaction(
    body: VendorTransactionCreate,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        transaction = service.record_vendor_transaction(body.model_dump(), context=context)
        return {"status": "success", "data": transaction.to_dict()}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error recording vendor transaction: {str(e)}")


@router.post("/vendor-transactions/{transaction_id}/pay")
async def mark_vendor_transaction_paid(
    transaction_id: str,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    """Move a pending transaction's amount from the vendor's due to paid"""
    try:
        transaction = service.mark_vendor_transaction_paid(transaction_id, context=context)
        if not transaction:
            raise HTTPException(status_code=404, detail=f"Pending vendor transaction {transaction_id} not found")
        return {"status": "success", "data": transaction.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error paying vendor transaction: {str(e)}")


# ============================================================================
# Adjustments
# ============================================================================

@router.get("/adjustments")
async def get_adjustments(
    adjustment_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        adjustments, total = service.repository.find_adjustments(
            adjustment_type=adjustment_type, limit=limit, offset=offset
        )
        return _page([a.to_dict() for a in adjustments], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching adjustments: {str(e)}")


@router.post("/adjustments", status_code=201)
async def record_adjustment(
    body: FinancialAdjustmentCreate,
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    try:
        adjustment = service.record_adjustment(body.model_dump(), context=context)
        return {"status": "success", "data": adjustment.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error recording adjustment: {str(e)}")


# ============================================================================
# Reports
# ============================================================================

@router.get("/summary")
async def get_summary(
    range: str = Query(DEFAULT_RANGE, description="7d, 30d, 90d, 1y or custom"),
    start_date: Optional[date] = Query(None, description="Custom range start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Custom range end (YYYY-MM-DD)"),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    """
    Income, expenses, refunds and net profit for a date range

    net_profit = total_income - total_expenses - total_refunds
    """
    try:
        start, end = resolve_date_range(range, start_date, end_date)
        summary = service.get_summary(start, end)
        return {"status": "success", "data": summary.model_dump()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building financial summary: {str(e)}")


@router.get("/sales-analytics")
async def get_sales_analytics(
    range: str = Query(DEFAULT_RANGE, description="7d, 30d, 90d, 1y or custom"),
    group_by: str = Query("daily", description="daily, weekly, monthly or yearly"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    context: AuditContext = Depends(admin_context),
    service: FinanceService = Depends(get_finance_service)
):
    """
    Subscriptions sold per period and per product

    Revenue is the price each subscription was sold at; products are ordered
    best sellers first.
    """
    try:
        data = service.get_sales_analytics(range, group_by, start_date, end_date)
        return {"status": "success", "data": data}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching sales analytics: {str(e)}")
