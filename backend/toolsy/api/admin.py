"""
Admin API
Auth codes, subscriptions, product code processing, refund queues and audit log

Every endpoint requires an admin bearer token.

Author: TM3
Date: 2026-03-08
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from toolsy.api.dependencies import admin_context
from toolsy.domain.subscription import SubscriptionCreate, SubscriptionUpdate
from toolsy.repositories.admin_repository import AdminRepository
from toolsy.repositories.purchase_repository import PurchaseRepository
from toolsy.repositories.refund_repository import RefundRepository
from toolsy.services.audit_service import AuditContext
from toolsy.services.catalog_service import get_catalog_service
from toolsy.services.finance_service import get_dashboard_stats
from toolsy.services.refund_service import RefundService, get_refund_service
from toolsy.services.subscription_service import (
    DuplicateAuthCodeError,
    SubscriptionService,
    get_subscription_service,
)
from toolsy.services.testimonial_service import get_testimonial_service

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class AuthCodeCreate(BaseModel):
    user_name: str
    user_email: str
    code: Optional[str] = None


class AuthCodeToggle(BaseModel):
    is_active: bool


class ProductCodeDecision(BaseModel):
    admin_notes: Optional[str] = None
    start_date: Optional[datetime] = None


class TicketStatusUpdate(BaseModel):
    status: str
    admin_notes: Optional[str] = None


class SubscriptionRefundUpdate(BaseModel):
    status: str
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_method: Optional[str] = None


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
# Dashboard
# ============================================================================

@router.get("/stats")
async def get_stats(context: AuditContext = Depends(admin_context)):
    try:
        return {"status": "success", "data": get_dashboard_stats()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching stats: {str(e)}")


@router.get("/cache/stats")
async def get_cache_stats(context: AuditContext = Depends(admin_context)):
    return {
        "status": "success",
        "data": {
            "catalog": get_catalog_service().cache_stats(),
            "testimonials": get_testimonial_service().cache_stats(),
        }
    }


@router.post("/cache/invalidate")
async def invalidate_caches(context: AuditContext = Depends(admin_context)):
    get_catalog_service().invalidate_cache()
    get_testimonial_service().invalidate_cache()
    logger.info(f"Caches invalidated by {context.user_id}")
    return {"status": "success", "message": "Caches invalidated"}


@router.get("/audit-log")
async def get_audit_log(
    table_name: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context)
):
    try:
        entries, total = AdminRepository().find_audit_log(
            table_name=table_name, action=action, limit=limit, offset=offset
        )
        return _page(entries, total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching audit log: {str(e)}")


# ============================================================================
# Auth codes
# ============================================================================

@router.get("/auth-codes")
async def get_auth_codes(
    search: Optional[str] = Query(None, description="Search by code, name or email"),
    is_active: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        codes, total = service.subscriptions.find_auth_codes(
            search=search, is_active=is_active, limit=limit, offset=offset
        )
        return _page([c.model_dump(mode='json') for c in codes], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching auth codes: {str(e)}")


@router.post("/auth-codes", status_code=201)
async def create_auth_code(
    body: AuthCodeCreate,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        auth_code = service.create_auth_code(body.user_name, body.user_email, code=body.code, context=context)
        return {"status": "success", "data": auth_code.model_dump(mode='json')}

    except DuplicateAuthCodeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating auth code: {str(e)}")


@router.patch("/auth-codes/{auth_code_id}")
async def toggle_auth_code(
    auth_code_id: str,
    body: AuthCodeToggle,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        auth_code = service.set_auth_code_active(auth_code_id, body.is_active, context=context)
        if not auth_code:
            raise HTTPException(status_code=404, detail=f"Auth code {auth_code_id} not found")
        return {"status": "success", "data": auth_code.model_dump(mode='json')}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating auth code: {str(e)}")


# ============================================================================
# Subscriptions
# ============================================================================

@router.get("/subscriptions")
async def get_subscriptions(
    status: Optional[str] = Query(None, description="active, expiring_soon, expired or cancelled"),
    user_auth_code_id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscriptions, total = service.subscriptions.find_all(
            status=status, user_auth_code_id=user_auth_code_id, product_id=product_id,
            limit=limit, offset=offset
        )
        return _page([s.to_dict() for s in subscriptions], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching subscriptions: {str(e)}")


@router.get("/subscriptions/expiry-stats")
async def get_expiry_stats(
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return {"status": "success", "data": service.expiry_stats()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching expiry stats: {str(e)}")


@router.get("/subscriptions/expiring")
async def get_expiring_subscriptions(
    days: Optional[int] = Query(None, ge=1, le=365),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscriptions = service.find_expiring(days)
        return {"status": "success", "count": len(subscriptions), "data": [s.to_dict() for s in subscriptions]}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching expiring subscriptions: {str(e)}")


@router.post("/subscriptions/refresh-statuses")
async def refresh_statuses(
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return {"status": "success", "data": service.refresh_statuses()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error refreshing statuses: {str(e)}")


@router.get("/subscriptions/{subscription_id}/receipt")
async def get_subscription_receipt(
    subscription_id: str,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        receipt = service.build_receipt(subscription_id)
        return {"status": "success", "data": receipt.to_dict()}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building receipt: {str(e)}")


@router.post("/subscriptions", status_code=201)
async def create_subscription(
    body: SubscriptionCreate,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscription = service.create_subscription(body.model_dump(), context=context)
        return {"status": "success", "data": subscription.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating subscription: {str(e)}")


@router.put("/subscriptions/{subscription_id}")
async def update_subscription(
    subscription_id: str,
    body: SubscriptionUpdate,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscription = service.update_subscription(
            subscription_id, body.model_dump(exclude_unset=True), context=context
        )
        if not subscription:
            raise HTTPException(status_code=404, detail=f"Subscription {subscription_id} not found")
        return {"status": "success", "data": subscription.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating subscription: {str(e)}")


# ============================================================================
# Product codes
# ============================================================================

@router.get("/product-codes")
async def get_product_codes(
    status: Optional[str] = Query(None, description="pending, approved or rejected"),
    search: Optional[str] = Query(None, description="Search by code, customer name or email"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        codes, total = service.product_codes.find_all(status=status, search=search, limit=limit, offset=offset)
        return _page([c.to_dict() for c in codes], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product codes: {str(e)}")


@router.post("/product-codes/{product_code_id}/approve")
async def approve_product_code(
    product_code_id: str,
    body: Optional[ProductCodeDecision] = None,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    body = body or ProductCodeDecision()
    try:
        result = service.approve_product_code(
            product_code_id, admin_notes=body.admin_notes, start_date=body.start_date, context=context
        )
        return {"status": "success", "data": result}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error approving product code: {str(e)}")


@router.post("/product-codes/{product_code_id}/reject")
async def reject_product_code(
    product_code_id: str,
    body: Optional[ProductCodeDecision] = None,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    body = body or ProductCodeDecision()
    try:
        result = service.reject_product_code(product_code_id, admin_notes=body.admin_notes, context=context)
        return {"status": "success", "data": result}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error rejecting product code: {str(e)}")


@router.post("/product-codes/{product_code_id}/cancel-subscription")
async def cancel_code_subscription(
    product_code_id: str,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscription_id = service.cancel_code_subscription(product_code_id, context=context)
        if not subscription_id:
            raise HTTPException(status_code=404, detail="No active subscription for this product code")
        return {"status": "success", "data": {"subscription_id": subscription_id}}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling subscription: {str(e)}")


@router.delete("/product-codes/by-user")
async def delete_user_product_codes(
    email: str = Query(..., description="Customer email"),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        deleted = service.delete_user_codes(email, context=context)
        return {"status": "success", "data": {"deleted": deleted}}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product codes: {str(e)}")


@router.delete("/product-codes/{product_code_id}")
async def delete_product_code(
    product_code_id: str,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        deleted = service.delete_product_code(product_code_id, context=context)
        if not deleted:
            raise HTTPException(status_code=404, detail=f"Product code {product_code_id} not found")
        return {"status": "success", "data": {"product_code": deleted}}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product code: {str(e)}")


@router.get("/purchase-requests")
async def get_purchase_requests(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context)
):
    try:
        requests, total = PurchaseRepository().find_all(status=status, search=search, limit=limit, offset=offset)
        return _page(requests, total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching purchase requests: {str(e)}")


# ============================================================================
# Refund queues
# ============================================================================

@router.get("/refund-requests")
async def get_refund_tickets(
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context)
):
    try:
        tickets, total = RefundRepository().find_tickets(status=status, limit=limit, offset=offset)
        return _page([t.to_dict() for t in tickets], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching refund requests: {str(e)}")


@router.get("/refund-requests/{ticket_id}")
async def get_refund_ticket(ticket_id: str, context: AuditContext = Depends(admin_context)):
    try:
        ticket = RefundRepository().find_ticket(ticket_id)
        if not ticket:
            raise HTTPException(status_code=404, detail=f"Refund request {ticket_id} not found")
        return {"status": "success", "data": ticket.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching refund request: {str(e)}")


@router.patch("/refund-requests/{ticket_id}")
async def update_refund_ticket(
    ticket_id: str,
    body: TicketStatusUpdate,
    context: AuditContext = Depends(admin_context),
    service: RefundService = Depends(get_refund_service)
):
    try:
        ticket = service.update_status(ticket_id, body.status, body.admin_notes)
        if not ticket:
            raise HTTPException(status_code=404, detail=f"Refund request {ticket_id} not found")
        return {"status": "success", "data": ticket.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating refund request: {str(e)}")


@router.get("/subscription-refunds")
async def get_subscription_refunds(
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        refunds, total = service.refunds.find_subscription_refunds(status=status, limit=limit, offset=offset)
        return _page([r.to_dict() for r in refunds], total, limit, offset)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching subscription refunds: {str(e)}")


@router.patch("/subscription-refunds/{refund_id}")
async def update_subscription_refund(
    refund_id: str,
    body: SubscriptionRefundUpdate,
    context: AuditContext = Depends(admin_context),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        refund = service.update_refund_request(
            refund_id,
            body.status,
            admin_notes=body.admin_notes,
            refund_amount=float(body.refund_amount) if body.refund_amount is not None else None,
            refund_method=body.refund_method,
            context=context,
        )
        if not refund:
            raise HTTPException(status_code=404, detail=f"Refund request {refund_id} not found")
        return {"status": "success", "data": refund.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating subscription refund: {str(e)}")
