"""
Wholesale Service - runs the vendor pricing and ordering pipeline.

Per request, strictly in order:
resolve vendor → resolve tier → fetch catalog → price cart → compute totals
→ (order placement only) generate order number → persist order + ledger.

Nothing is cached between requests; the store is injected at construction.
"""
import asyncio
import logging
from typing import Optional

from ..engine.models import Order, Quote, Request, Vendor, coerce_number
from ..engine.pricing_engine import PricingEngine, calculate_totals, map_product_pricing
from ..engine.unit_price import round_currency
from ..errors import (
    AuthenticationRequired,
    AuthorizationMismatch,
    ConflictError,
    DependencyUnavailable,
    DuplicateKeyError,
    NotFoundError,
    ReconciliationRequired,
)
from ..policy.tier_resolver import PricingTierResolver
from ..policy.vendor_resolver import VendorResolver
from ..store.base import WholesaleStore
from .order_numbers import OrderNumberGenerator, OrderNumberPolicy
from .order_service import OrderPersistence

logger = logging.getLogger(__name__)


class WholesaleService:
    """Entry point used by the HTTP adapters."""

    def __init__(
        self,
        store: WholesaleStore,
        vendor_resolver: Optional[VendorResolver] = None,
        tier_resolver: Optional[PricingTierResolver] = None,
        engine: Optional[PricingEngine] = None,
        order_numbers: Optional[OrderNumberGenerator] = None,
        persistence: Optional[OrderPersistence] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.store = store
        self.vendor_resolver = vendor_resolver or VendorResolver(store)
        self.tier_resolver = tier_resolver or PricingTierResolver()
        self.engine = engine or PricingEngine(store)
        self.order_numbers = order_numbers or OrderNumberGenerator(store)
        self.persistence = persistence or OrderPersistence(store)
        self.timeout_seconds = timeout_seconds

    @property
    def order_policy(self) -> OrderNumberPolicy:
        return self.order_numbers.policy

    async def _bounded(self, coro):
        if not self.timeout_seconds:
            return await coro
        return await asyncio.wait_for(coro, self.timeout_seconds)

    async def authenticate(
        self,
        vendor_id: Optional[str] = None,
        vendor_email: Optional[str] = None,
        authorization: Optional[str] = None,
    ) -> Vendor:
        """
        Resolve the calling vendor or raise.

        Raises:
            AuthenticationRequired: no enabled vendor matches
            AuthorizationMismatch: an explicit vendor id names another vendor
        """
        vendor = await self.vendor_resolver.resolve(
            vendor_id=vendor_id,
            vendor_email=vendor_email,
            authorization=authorization,
        )
        if vendor is None:
            raise AuthenticationRequired()

        if vendor_id:
            requested = self.vendor_resolver.normalize_id(vendor_id)
            if requested and requested != vendor.id:
                logger.warning("Vendor id %s does not match resolved vendor %s", requested, vendor.id)
                raise AuthorizationMismatch()
        return vendor

    async def _quote(self, request: Request) -> Quote:
        vendor = await self.authenticate(request.vendor_id, request.vendor_email, request.authorization)
        tier = self.tier_resolver.resolve(vendor, request.pricing_tier)
        cart = await self.engine.price_cart(request.items, tier.tier, tier.custom_discount)
        totals = calculate_totals(cart, shipping=request.shipping, tax_rate=request.tax_rate)
        return Quote(vendor=vendor, tier=tier, cart=cart, totals=totals)

    async def quote(self, request: Request) -> Quote:
        """Price a cart for the calling vendor. Safe to retry."""
        try:
            return await self._bounded(self._quote(request))
        except asyncio.TimeoutError as exc:
            raise DependencyUnavailable("Cart pricing timed out") from exc

    async def place_order(self, request: Request) -> tuple[Quote, Order]:
        """Price the cart, then persist it as a paid wholesale order."""
        quote = await self.quote(request)
        try:
            order = await self._bounded(self._persist_with_unique_number(quote))
        except asyncio.TimeoutError as exc:
            logger.error("Order persistence timed out for vendor %s; needs reconciliation", quote.vendor.id)
            raise ReconciliationRequired("Order persistence timed out") from exc
        return quote, order

    async def _persist_with_unique_number(self, quote: Quote) -> Order:
        created_at = self.persistence.now()
        for attempt in range(1, self.order_policy.max_conflict_retries + 1):
            order_number = await self.order_numbers.generate()
            order = self.persistence.build_order(
                quote.vendor, quote.cart, quote.totals, order_number, created_at=created_at,
            )
            try:
                return await self.persistence.persist(quote.vendor, order)
            except DuplicateKeyError:
                logger.warning("Order number %s taken at create time (attempt %d)", order_number, attempt)
        raise ConflictError("Could not allocate a unique order number")

    async def list_catalog(
        self,
        vendor_id: Optional[str] = None,
        vendor_email: Optional[str] = None,
        authorization: Optional[str] = None,
        pricing_tier: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> dict:
        """Wholesale catalog priced for the calling vendor's tier."""
        vendor = await self.authenticate(vendor_id, vendor_email, authorization)
        tier = self.tier_resolver.resolve(vendor, pricing_tier)
        docs = await self.store.list_wholesale_products(category_id)
        return {
            "products": [map_product_pricing(doc, tier.tier, tier.custom_discount) for doc in docs],
            "vendor": {"id": vendor.id, "tier": tier.tier, "email": vendor.contact_email},
        }

    async def get_product(
        self,
        slug: str,
        vendor_id: Optional[str] = None,
        vendor_email: Optional[str] = None,
        authorization: Optional[str] = None,
        pricing_tier: Optional[str] = None,
    ) -> dict:
        """Single product detail with effective price and margins."""
        vendor = await self.authenticate(vendor_id, vendor_email, authorization)
        tier = self.tier_resolver.resolve(vendor, pricing_tier)
        doc = await self.store.get_product_by_slug(slug)
        if doc is None:
            raise NotFoundError(f"Product {slug} not found")

        product = map_product_pricing(doc, tier.tier, tier.custom_discount)
        base = doc.get('price')
        product['margin'] = {
            'standard': _margin(base, doc.get('wholesalePriceStandard')),
            'preferred': _margin(base, doc.get('wholesalePricePreferred')),
        }
        return product

    async def order_history(
        self,
        vendor_id: Optional[str] = None,
        vendor_email: Optional[str] = None,
        authorization: Optional[str] = None,
    ) -> dict:
        vendor = await self.authenticate(vendor_id, vendor_email, authorization)
        docs = await self.store.list_vendor_orders(vendor.id)
        orders = [
            {
                "id": doc.get('_id'),
                "orderNumber": doc.get('orderNumber'),
                "status": doc.get('status'),
                "createdAt": doc.get('createdAt'),
                "totalAmount": doc.get('totalAmount'),
                "cart": [
                    {
                        "name": line.get('name'),
                        "sku": line.get('sku'),
                        "quantity": line.get('quantity'),
                        "price": line.get('price'),
                        "total": line.get('total'),
                    }
                    for line in doc.get('cart') or []
                ],
            }
            for doc in docs
        ]
        return {"orders": orders, "vendor": {"id": vendor.id}}


def _margin(base, wholesale) -> Optional[float]:
    base, wholesale = coerce_number(base), coerce_number(wholesale)
    if base is None or wholesale is None:
        return None
    return round_currency(base - wholesale)
