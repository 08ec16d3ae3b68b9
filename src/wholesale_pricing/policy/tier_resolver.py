"""
Tier Resolver - Resolves the effective pricing tier for a request.
"""
from typing import Optional

from ..engine.models import PRICING_TIERS, TierResolution, Vendor


def parse_tier(value) -> Optional[str]:
    """Normalize a tier string; anything outside the tier enum is treated as absent."""
    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized if normalized in PRICING_TIERS else None


class PricingTierResolver:
    """
    Resolves the tier and custom discount used to price a cart.

    Waterfall precedence:
    1. Explicit tier requested by the caller (if valid)
    2. Vendor's negotiated pricing tier
    3. Fallback: standard
    """

    DEFAULT_TIER = 'standard'

    def resolve(self, vendor: Optional[Vendor], explicit_tier: Optional[str] = None) -> TierResolution:
        tier = (
            parse_tier(explicit_tier)
            or parse_tier(vendor.pricing_tier if vendor else None)
            or self.DEFAULT_TIER
        )

        # A missing custom discount is passed through; pricing treats it as 0%.
        custom_discount = None
        if tier == 'custom' and vendor is not None:
            custom_discount = vendor.custom_discount_percentage

        return TierResolution(tier=tier, custom_discount=custom_discount)
