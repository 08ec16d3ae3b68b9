import base64
import json
import random

import pytest

from wholesale_pricing.services.order_numbers import OrderNumberGenerator
from wholesale_pricing.services.wholesale_service import WholesaleService
from wholesale_pricing.store.memory import InMemoryStore


def make_token(claims: dict) -> str:
    """Unsigned JWT-shaped token carrying ``claims``."""
    def seg(obj):
        raw = json.dumps(obj).encode('utf-8')
        return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')
    return f"{seg({'alg': 'none'})}.{seg(claims)}.signature"


def bearer(claims: dict) -> str:
    return f"Bearer {make_token(claims)}"


PRODUCTS = [
    {
        '_id': 'p1', '_type': 'product', 'title': 'Cold Air Intake', 'slug': {'current': 'cold-air-intake'},
        'sku': 'CAI-1', 'price': 100, 'wholesalePriceStandard': 80,
        'availableForWholesale': True, 'status': 'active', 'availability': 'in_stock',
        'categoryIds': ['cat-intake'],
    },
    {
        '_id': 'p2', '_type': 'product', 'title': 'Boost Gauge', 'slug': {'current': 'boost-gauge'},
        'sku': 'BG-2', 'price': 59.99, 'wholesalePricePreferred': 44.5,
        'pricingTiers': [{'label': 'Platinum', 'price': 39.999}],
        'availableForWholesale': True, 'status': 'active', 'availability': 'backorder',
        'categoryIds': ['cat-gauges'],
    },
    {
        '_id': 'p-retail', '_type': 'product', 'title': 'Hoodie', 'sku': 'H-1', 'price': 65,
        'availableForWholesale': False, 'status': 'active', 'availability': 'in_stock',
    },
    {
        '_id': 'p-archived', '_type': 'product', 'title': 'Old Part', 'sku': 'OLD', 'price': 10,
        'availableForWholesale': True, 'status': 'archived', 'availability': 'in_stock',
    },
]

VENDORS = [
    {
        '_id': 'v-standard', '_type': 'vendor', 'companyName': 'Speed Shop', 'pricingTier': 'standard',
        'portalAccess': {'enabled': True, 'email': 'orders@speedshop.example'},
        'primaryContact': {'email': 'owner@speedshop.example'},
        'portalUsers': [{'email': 'Buyer@SpeedShop.example'}],
    },
    {
        '_id': 'v-custom', '_type': 'vendor', 'companyName': 'Trackday Tuning', 'pricingTier': 'custom',
        'customDiscountPercentage': 15,
        'portalAccess': {'enabled': True, 'email': 'portal@trackday.example'},
        'totalOrders': 2, 'totalRevenue': 500.0, 'currentBalance': 120.0,
    },
    {
        '_id': 'v-disabled', '_type': 'vendor', 'companyName': 'Pending Garage', 'pricingTier': 'platinum',
        'portalAccess': {'enabled': False, 'email': 'hello@pending.example'},
    },
    {
        '_id': 'v-truthy', '_type': 'vendor', 'companyName': 'Stringly Typed', 'pricingTier': 'standard',
        'portalAccess': {'enabled': 'true', 'email': 'strings@truthy.example'},
    },
]


@pytest.fixture
def store():
    return InMemoryStore(PRODUCTS + VENDORS)


@pytest.fixture
def service(store):
    return WholesaleService(
        store,
        order_numbers=OrderNumberGenerator(store, rng=random.Random(1234)),
    )
