"""
Currency Service
Display conversion from the NGN base price into the shopper's currency

Rates are fixed (NGN = 1); prices are stored and charged in NGN.

Author: TM3
Date: 2026-03-07
"""
import math
from typing import Dict, List, Optional

BASE_CURRENCY = 'NGN'

EXCHANGE_RATES: Dict[str, float] = {
    'NGN': 1,
    'USD': 0.001,
    'EUR': 0.0009,
    'GBP': 0.0008,
    'AED': 0.0037,
    'SAR': 0.0037,
    'CAD': 0.0013,
    'AUD': 0.0015,
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    'NGN': '₦',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'AED': 'د.إ',
    'SAR': '﷼',
    'CAD': 'C$',
    'AUD': 'A$',
}

CURRENCY_NAMES: Dict[str, str] = {
    'NGN': 'Nigerian Naira',
    'USD': 'US Dollar',
    'EUR': 'Euro',
    'GBP': 'British Pound',
    'AED': 'UAE Dirham',
    'SAR': 'Saudi Riyal',
    'CAD': 'Canadian Dollar',
    'AUD': 'Australian Dollar',
}


def _require_currency(currency: str) -> str:
    code = (currency or '').upper()
    if code not in EXCHANGE_RATES:
        raise ValueError(f"Unsupported currency '{currency}'. Valid: {', '.join(EXCHANGE_RATES)}")
    return code


def available_currencies() -> List[dict]:
    return [
        {
            "code": code,
            "symbol": CURRENCY_SYMBOLS[code],
            "name": CURRENCY_NAMES[code],
            "rate": rate,
        }
        for code, rate in EXCHANGE_RATES.items()
    ]


def convert(amount: float, currency: str) -> float:
    """NGN amount expressed in currency"""
    code = _require_currency(currency)
    if code == BASE_CURRENCY:
        return amount
    return amount * EXCHANGE_RATES[code]


def _is_invalid_amount(amount) -> bool:
    if amount is None:
        return True
    try:
        return math.isnan(float(amount))
    except (TypeError, ValueError):
        return True


def format_amount(amount: Optional[float], currency: str = BASE_CURRENCY, show_symbol: bool = True) -> str:
    """
    Converted amount with symbol, two decimals and thousands separators

    Missing or non-numeric amounts format as 0.00.
    """
    code = _require_currency(currency)
    symbol = CURRENCY_SYMBOLS[code] if show_symbol else ''

    if _is_invalid_amount(amount):
        return f"{symbol}0.00"

    return f"{symbol}{convert(float(amount), code):,.2f}"
