"""
Checkout API Endpoints
Manual-fulfillment checkout (codes + WhatsApp hand-off)

Author: TM3
Date: 2026-03-08
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from toolsy.core.rate_limit import rate_limit, CHECKOUT_RATE_LIMIT
from toolsy.domain.checkout import CheckoutRequest
from toolsy.services.checkout_service import CheckoutService, get_checkout_service

logger = logging.getLogger(__name__)

router = APIRouter()


class WhatsAppSent(BaseModel):
    user_code: str


@router.post("/", dependencies=[Depends(rate_limit(*CHECKOUT_RATE_LIMIT))])
async def checkout(body: CheckoutRequest, service: CheckoutService = Depends(get_checkout_service)):
    """
    Create a purchase request with one pending product code per unit

    Returns the user code, the product codes and the WhatsApp link the
    customer opens to complete the order.
    """
    try:
        result = service.checkout(body)
        return {"status": "success", "data": result.model_dump()}

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Checkout failed for {body.user_email}: {e}")
        raise HTTPException(status_code=500, detail=f"Error processing checkout: {str(e)}")


@router.post("/{purchase_request_id}/whatsapp-sent")
async def mark_whatsapp_sent(
    purchase_request_id: str,
    body: WhatsAppSent,
    service: CheckoutService = Depends(get_checkout_service)
):
    try:
        if not service.mark_whatsapp_sent(purchase_request_id, body.user_code.strip().upper()):
            raise HTTPException(status_code=404, detail="Purchase request not found")
        return {"status": "success"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating purchase request: {str(e)}")
