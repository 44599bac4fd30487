"""
Cart API Endpoints
Server-side shopping carts

Clients only send product ids and plan choices; prices are resolved here.

Author: TM3
Date: 2026-03-08
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from toolsy.services.cart_service import CartService, get_cart_service

router = APIRouter()


# Request models
class CartCreate(BaseModel):
    currency: Optional[str] = None


class CartItemAdd(BaseModel):
    product_id: str
    subscription_type: str = 'shared'
    subscription_period: str = '1_month'


class QuantityUpdate(BaseModel):
    quantity: int = Field(..., le=20)


class PlanUpdate(BaseModel):
    subscription_type: str
    subscription_period: str


def _cart_response(cart):
    return {"status": "success", "data": cart.to_dict()}


@router.post("/", status_code=201)
async def create_cart(body: Optional[CartCreate] = None, service: CartService = Depends(get_cart_service)):
    try:
        cart = service.create_cart(currency=body.currency if body else None)
        return _cart_response(cart)

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating cart: {str(e)}")


@router.get("/{cart_id}")
async def get_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    try:
        cart = service.get_cart(cart_id)
        if not cart:
            raise HTTPException(status_code=404, detail=f"Cart {cart_id} not found")
        return _cart_response(cart)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching cart: {str(e)}")


@router.post("/{cart_id}/items")
async def add_item(cart_id: str, body: CartItemAdd, service: CartService = Depends(get_cart_service)):
    try:
        cart = service.add_item(cart_id, body.product_id, body.subscription_type, body.subscription_period)
        return _cart_response(cart)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding item: {str(e)}")


@router.patch("/{cart_id}/items/{product_id}")
async def update_quantity(
    cart_id: str,
    product_id: str,
    body: QuantityUpdate,
    service: CartService = Depends(get_cart_service)
):
    """Set a line's quantity; 0 or less removes it"""
    try:
        cart = service.update_quantity(cart_id, product_id, body.quantity)
        return _cart_response(cart)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating quantity: {str(e)}")


@router.put("/{cart_id}/items/{product_id}/plan")
async def update_plan(
    cart_id: str,
    product_id: str,
    body: PlanUpdate,
    service: CartService = Depends(get_cart_service)
):
    try:
        cart = service.update_plan(cart_id, product_id, body.subscription_type, body.subscription_period)
        return _cart_response(cart)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating plan: {str(e)}")


@router.delete("/{cart_id}/items/{product_id}")
async def remove_item(cart_id: str, product_id: str, service: CartService = Depends(get_cart_service)):
    try:
        return _cart_response(service.remove_item(cart_id, product_id))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing item: {str(e)}")


@router.delete("/{cart_id}/items")
async def clear_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    try:
        return _cart_response(service.clear(cart_id))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error clearing cart: {str(e)}")
