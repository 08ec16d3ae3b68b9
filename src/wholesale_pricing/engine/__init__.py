"""Engine subpackage - cart pricing, unit price resolution and totals."""
from .pricing_engine import PricingEngine, calculate_totals, map_product_pricing
from .models import CartItemInput, PricedCartItem, Totals
from .unit_price import resolve_unit_price, round_currency

__all__ = [
    'PricingEngine', 'calculate_totals', 'map_product_pricing',
    'CartItemInput', 'PricedCartItem', 'Totals',
    'resolve_unit_price', 'round_currency',
]
