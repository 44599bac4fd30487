"""
Currency API
Display currencies and NGN conversion

Author: TM3
Date: 2026-03-09
"""
from fastapi import APIRouter, HTTPException, Query

from toolsy.services.currency_service import BASE_CURRENCY, available_currencies, convert, format_amount

router = APIRouter()


@router.get("/")
async def get_currencies():
    currencies = available_currencies()
    return {"status": "success", "base": BASE_CURRENCY, "count": len(currencies), "data": currencies}


@router.get("/convert")
async def convert_amount(
    amount: float = Query(..., description="Amount in NGN"),
    currency: str = Query(..., description="Target currency code")
):
    try:
        return {
            "status": "success",
            "data": {
                "amount": amount,
                "currency": currency.upper(),
                "converted": round(convert(amount, currency), 2),
                "formatted": format_amount(amount, currency),
            }
        }

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
