"""
Unit price resolution - turns a product snapshot and a tier into a unit price.

Used by the pricing engine for cart lines and by the catalog listing for the
"your price" column.

Resolution order:
1. Custom tier entry whose label matches the tier (case-insensitive)
2. Named wholesale price field for standard/preferred/platinum
3. Base price less the default tier discount
4. Base price less the vendor's custom discount (tier "custom")
"""
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Optional

from .models import ProductPricing, coerce_number

DEFAULT_VENDOR_DISCOUNTS = {
    'standard': 20,
    'preferred': 30,
    'platinum': 40,
}

_CENT = Decimal('0.01')


def round_currency(value) -> float:
    """Round to 2 decimals, half-up. Non-finite values become 0."""
    number = coerce_number(value)
    if number is None:
        return 0.0
    # Work on the shortest decimal repr so 1.005 rounds to 1.01
    value = Decimal(repr(number))
    with localcontext() as ctx:
        # Enough digits for every integer digit plus the two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def percent_to_multiplier(percent: Optional[float]) -> float:
    """``1 - percent/100`` clamped at 0; an absent or invalid percent means no discount."""
    percent = coerce_number(percent)
    if percent is None:
        return 1.0
    return max(0.0, 1 - percent / 100)


def match_tier_entry(product: ProductPricing, tier: str) -> Optional[float]:
    """Price of the first custom tier entry labelled ``tier``, if it has a valid price."""
    normalized = tier.lower()
    for entry in product.pricing_tiers:
        if (entry.label or '').lower() == normalized:
            return coerce_number(entry.price)
    return None


def resolve_unit_price(
    product: Optional[ProductPricing],
    tier: str,
    custom_discount: Optional[float] = None,
) -> float:
    """
    Resolve the unit price of ``product`` for ``tier``.

    Pure function of (product, tier, discount). The result is always rounded
    to 2 decimals.
    """
    if product is None:
        return 0.0
    base_price = product.price if product.price is not None else 0.0

    entry_price = match_tier_entry(product, tier)
    if entry_price is not None:
        return round_currency(entry_price)

    if tier in DEFAULT_VENDOR_DISCOUNTS:
        named = product.named_tier_price(tier)
        if named is not None:
            return round_currency(named)
        return round_currency(base_price * percent_to_multiplier(DEFAULT_VENDOR_DISCOUNTS[tier]))

    if tier == 'custom':
        return round_currency(base_price * percent_to_multiplier(custom_discount))

    return round_currency(base_price)


def line_total(unit_price: float, quantity: int) -> float:
    if not math.isfinite(unit_price):
        return 0.0
    return round_currency(unit_price * quantity)
