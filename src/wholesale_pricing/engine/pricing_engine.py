"""
Cart Pricing Engine - prices a wholesale cart under a resolved tier.

Pipeline per request:
1. Deduplicate requested product ids (first appearance wins)
2. Batch-fetch wholesale-available, active products in one store call
3. For every cart line: normalize quantity, resolve unit price, extend
4. Totals are derived from the priced lines by ``calculate_totals``

Pricing is all-or-nothing: one unpriceable line fails the whole cart.
"""
import logging
import math
from typing import Iterable, Optional

from ..errors import ProductNotFoundError, ValidationError
from ..store.base import WholesaleStore
from .models import CartItemInput, PricedCartItem, ProductPricing, Totals, coerce_number
from .unit_price import line_total, resolve_unit_price, round_currency

logger = logging.getLogger(__name__)


def normalize_quantity(value) -> int:
    """Floor to an integer and clamp at 1. Missing or non-finite values become 1."""
    number = coerce_number(value)
    if number is None:
        return 1
    return max(1, math.floor(number))


def unique_product_ids(items: Iterable[CartItemInput]) -> list[str]:
    """Non-blank product ids in order of first appearance."""
    ids = []
    seen = set()
    for item in items:
        product_id = item.product_id
        if not isinstance(product_id, str) or not product_id.strip():
            continue
        if product_id not in seen:
            seen.add(product_id)
            ids.append(product_id)
    return ids


def calculate_totals(
    cart: list[PricedCartItem],
    shipping: Optional[float] = None,
    tax_rate: Optional[float] = None,
) -> Totals:
    """Derive subtotal, tax, shipping and total from priced lines."""
    subtotal = round_currency(sum(
        item.line_total if coerce_number(item.line_total) is not None else 0
        for item in cart
    ))

    shipping = coerce_number(shipping)
    shipping = round_currency(shipping) if shipping is not None and shipping > 0 else 0.0

    tax_rate = coerce_number(tax_rate)
    tax = round_currency(subtotal * tax_rate) if tax_rate is not None and tax_rate > 0 else 0.0

    return Totals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=round_currency(subtotal + tax + shipping),
    )


def map_product_pricing(product_doc: dict, tier: str, custom_discount: Optional[float] = None) -> dict:
    """Catalog view of a product document with its effective wholesale price attached."""
    product = ProductPricing.from_document(product_doc)
    view = {k: v for k, v in product_doc.items() if not k.startswith('_')}
    view['id'] = product.id
    view['inStock'] = product.in_stock
    view['wholesalePricing'] = {
        'standard': product.wholesale_price_standard,
        'preferred': product.wholesale_price_preferred,
        'effectiveTier': tier,
        'effectivePrice': resolve_unit_price(product, tier, custom_discount),
    }
    return view


class PricingEngine:
    """
    Prices carts against the live catalog.

    Holds no catalog state of its own: every call reads the store, so each
    request reflects the latest catalog data.
    """

    def __init__(self, store: WholesaleStore):
        self.store = store

    async def fetch_products(self, product_ids: list[str]) -> dict[str, ProductPricing]:
        docs = await self.store.fetch_wholesale_products(product_ids)
        products = {}
        for doc in docs:
            product = ProductPricing.from_document(doc)
            products.setdefault(product.id, product)
        return products

    async def price_cart(
        self,
        items: list[CartItemInput],
        tier: str,
        custom_discount: Optional[float] = None,
    ) -> list[PricedCartItem]:
        """
        Price every cart line under ``tier``.

        Raises:
            ValidationError: the item list is empty or has no product ids
            ProductNotFoundError: a line's product is not available for wholesale
        """
        if not items:
            raise ValidationError("Cart is empty")
        product_ids = unique_product_ids(items)
        if not product_ids:
            raise ValidationError("Cart is missing productIds")

        products = await self.fetch_products(product_ids)
        logger.debug("Fetched %d/%d cart products", len(products), len(product_ids))

        return [self._price_line(item, products, tier, custom_discount) for item in items]

    def _price_line(
        self,
        item: CartItemInput,
        products: dict[str, ProductPricing],
        tier: str,
        custom_discount: Optional[float],
    ) -> PricedCartItem:
        product = products.get(item.product_id)
        if product is None:
            raise ProductNotFoundError(str(item.product_id))

        quantity = normalize_quantity(item.quantity)
        unit_price = resolve_unit_price(product, tier, custom_discount)
        return PricedCartItem(
            product_id=product.id,
            name=product.title,
            sku=product.sku,
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total(unit_price, quantity),
            effective_tier=tier,
            in_stock=product.in_stock,
            standard_price=product.wholesale_price_standard,
            preferred_price=product.wholesale_price_preferred,
        )
