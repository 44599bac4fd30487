"""
Pricing Service
Resolves the price of a product for a subscription type and period

Resolution order:
1. An enabled pricing plan of the requested type:
   - 1_month uses the plan's monthly_price
   - 1_year uses the plan's yearly_price
2. Otherwise the product's base price times the type and period multipliers

Author: TM3
Date: 2026-03-06
"""
import re
from typing import Dict, List, Optional

from toolsy.domain.product import Product


SUBSCRIPTION_TYPE_MULTIPLIERS: Dict[str, float] = {
    'shared': 1.0,
    'semi_private': 1.5,
    'private': 2.0,
}

SUBSCRIPTION_PERIOD_MULTIPLIERS: Dict[str, float] = {
    '1_month': 1.0,
    '3_months': 2.5,
    '6_months': 4.5,
    '1_year': 8.0,
    '2_years': 14.0,
    'lifetime': 25.0,
}

PERIOD_LABELS: Dict[str, str] = {
    '1_month': '1 Month',
    '3_months': '3 Months',
    '6_months': '6 Months',
    '1_year': '1 Year',
    '2_years': '2 Years',
    'lifetime': 'Lifetime',
}

TYPE_LABELS: Dict[str, str] = {
    'shared': 'Shared',
    'semi_private': 'Semi-Private',
    'private': 'Private',
}

_NON_NUMERIC = re.compile(r'[^0-9.]')
_LEADING_NUMBER = re.compile(r'\d+(?:\.\d+)?|\.\d+')


def parse_price(value) -> float:
    """
    Parse a price display string into a number

    Everything except digits and dots is dropped ("₦4,500" -> 4500.0).
    Unparseable or empty values are 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _NON_NUMERIC.sub('', str(value))
    # "1.2.3" keeps its leading number, like parseFloat
    match = _LEADING_NUMBER.match(cleaned)
    return float(match.group(0)) if match else 0.0


def validate_plan_choice(subscription_type: str, subscription_period: str) -> None:
    """Raise ValueError for unknown types or periods"""
    if subscription_type not in SUBSCRIPTION_TYPE_MULTIPLIERS:
        raise ValueError(
            f"Invalid subscription_type '{subscription_type}'. "
            f"Valid: {', '.join(SUBSCRIPTION_TYPE_MULTIPLIERS)}"
        )
    if subscription_period not in SUBSCRIPTION_PERIOD_MULTIPLIERS:
        raise ValueError(
            f"Invalid subscription_period '{subscription_period}'. "
            f"Valid: {', '.join(SUBSCRIPTION_PERIOD_MULTIPLIERS)}"
        )


class PricingService:
    """Price resolution for products and their plans"""

    def find_plan_price(
        self,
        product: Product,
        subscription_type: str,
        subscription_period: str
    ) -> Optional[float]:
        """Price from a matching enabled plan, or None"""
        for plan in product.pricing_plans:
            if not plan.is_enabled or plan.plan_type != subscription_type:
                continue
            if subscription_period == '1_month' and plan.monthly_price:
                return parse_price(plan.monthly_price)
            if subscription_period == '1_year' and plan.yearly_price:
                return parse_price(plan.yearly_price)
        return None

    def fallback_price(
        self,
        product: Product,
        subscription_type: str,
        subscription_period: str
    ) -> float:
        """Base price x type multiplier x period multiplier, rounded"""
        base = parse_price(product.price) or parse_price(product.original_price)
        multiplier = (
            SUBSCRIPTION_TYPE_MULTIPLIERS.get(subscription_type, 1.0) *
            SUBSCRIPTION_PERIOD_MULTIPLIERS.get(subscription_period, 1.0)
        )
        return float(round(base * multiplier))

    def resolve_price(
        self,
        product: Product,
        subscription_type: str,
        subscription_period: str
    ) -> float:
        """
        Price of one unit of product for a plan choice

        Raises:
            ValueError: unknown type or period
        """
        validate_plan_choice(subscription_type, subscription_period)

        plan_price = self.find_plan_price(product, subscription_type, subscription_period)
        if plan_price is not None:
            return plan_price

        return self.fallback_price(product, subscription_type, subscription_period)

    def available_types(self, product: Product) -> List[str]:
        """Types with an enabled plan; every type when the product has no plans"""
        if not product.pricing_plans:
            return list(SUBSCRIPTION_TYPE_MULTIPLIERS)
        enabled = {plan.plan_type for plan in product.enabled_plans}
        return [t for t in SUBSCRIPTION_TYPE_MULTIPLIERS if t in enabled]

    def price_matrix(self, product: Product) -> List[dict]:
        """Every available type and period with its price (for the pricing table)"""
        matrix = []
        for subscription_type in self.available_types(product):
            for subscription_period in SUBSCRIPTION_PERIOD_MULTIPLIERS:
                matrix.append({
                    "subscription_type": subscription_type,
                    "subscription_type_label": TYPE_LABELS[subscription_type],
                    "subscription_period": subscription_period,
                    "subscription_period_label": PERIOD_LABELS[subscription_period],
                    "price": self.resolve_price(product, subscription_type, subscription_period),
                })
        return matrix
