"""
Subscription Portal API
Customers sign in with their auth code to see their subscriptions

Author: TM3
Date: 2026-03-08
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from toolsy.core.auth import require_auth_code
from toolsy.core.rate_limit import rate_limit, LOGIN_RATE_LIMIT
from toolsy.domain.subscription import AuthCode
from toolsy.services.subscription_service import SubscriptionService, get_subscription_service

router = APIRouter()


class PortalLogin(BaseModel):
    code: str


class RefundRequestCreate(BaseModel):
    reason: str
    description: Optional[str] = None


def _auth_code_data(auth_code: AuthCode) -> dict:
    return {
        "id": auth_code.id,
        "code": auth_code.code,
        "user_name": auth_code.user_name,
        "user_email": auth_code.user_email,
    }


@router.post("/login", dependencies=[Depends(rate_limit(*LOGIN_RATE_LIMIT))])
async def login(body: PortalLogin, service: SubscriptionService = Depends(get_subscription_service)):
    """Exchange an auth code for the customer's subscriptions"""
    try:
        signed_in = service.sign_in(body.code)
        if not signed_in:
            raise HTTPException(status_code=401, detail="Invalid or inactive auth code")

        auth_code, subscriptions = signed_in
        return {
            "status": "success",
            "data": {
                "auth_code": _auth_code_data(auth_code),
                "subscriptions": [s.to_dict() for s in subscriptions],
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error signing in: {str(e)}")


@router.get("/subscriptions")
async def get_my_subscriptions(
    auth_code: AuthCode = Depends(require_auth_code),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        subscriptions = service.list_customer_subscriptions(auth_code)
        return {"status": "success", "count": len(subscriptions), "data": [s.to_dict() for s in subscriptions]}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching subscriptions: {str(e)}")


@router.get("/product-codes")
async def get_my_product_codes(
    auth_code: AuthCode = Depends(require_auth_code),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        codes = service.list_customer_product_codes(auth_code)
        return {"status": "success", "count": len(codes), "data": [c.to_dict() for c in codes]}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product codes: {str(e)}")


@router.get("/subscriptions/{subscription_id}/receipt")
async def get_my_receipt(
    subscription_id: str,
    auth_code: AuthCode = Depends(require_auth_code),
    service: SubscriptionService = Depends(get_subscription_service)
):
    """Receipt data for one of the customer's subscriptions"""
    try:
        receipt = service.build_receipt(subscription_id, auth_code=auth_code)
        return {"status": "success", "data": receipt.to_dict()}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building receipt: {str(e)}")


@router.post("/subscriptions/{subscription_id}/refund-requests", status_code=201)
async def request_refund(
    subscription_id: str,
    body: RefundRequestCreate,
    auth_code: AuthCode = Depends(require_auth_code),
    service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        refund = service.request_refund(auth_code, subscription_id, body.reason, body.description)
        return {"status": "success", "data": refund.to_dict()}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error submitting refund request: {str(e)}")
