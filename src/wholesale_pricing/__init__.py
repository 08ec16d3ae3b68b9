"""
Wholesale Pricing Package

Prices wholesale vendor carts and places wholesale orders.
Resolves pricing using Vendor → Tier → Unit Price pipeline with default tier discounts as fallback.
"""

__version__ = "1.0.0"
