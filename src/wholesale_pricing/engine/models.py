"""
Data models for the wholesale pricing core.

Uses dataclasses for structured, type-safe data representation. Store records
are schemaless documents (camelCase keys); each record type parses itself from
a document with ``from_document`` and every optional field is explicit.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Optional

PRICING_TIERS = ('standard', 'preferred', 'platinum', 'custom')


def coerce_number(value: Any) -> Optional[float]:
    """Return ``value`` as a float if it is a finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class PortalAccess:
    """Vendor portal credentials. ``enabled`` gates authentication."""
    enabled: Optional[bool] = None
    email: Optional[str] = None


@dataclass
class Vendor:
    """A wholesale buyer account."""
    id: str
    company_name: Optional[str] = None
    pricing_tier: Optional[str] = None
    custom_discount_percentage: Optional[float] = None
    portal_access: PortalAccess = field(default_factory=PortalAccess)
    primary_contact_email: Optional[str] = None
    email: Optional[str] = None
    portal_user_emails: list[str] = field(default_factory=list)
    status: Optional[str] = None
    payment_terms: Optional[str] = None

    # Ledger aggregates
    credit_limit: Optional[float] = None
    current_balance: Optional[float] = None
    total_orders: Optional[int] = None
    total_revenue: Optional[float] = None
    last_order_date: Optional[str] = None

    @property
    def portal_enabled(self) -> bool:
        # Only a literal True counts; truthy strings or numbers do not.
        return self.portal_access.enabled is True

    @property
    def contact_email(self) -> Optional[str]:
        return self.portal_access.email or self.primary_contact_email

    def candidate_emails(self) -> list[str]:
        """All emails this vendor may authenticate with, in match order."""
        emails = [
            self.portal_access.email,
            self.primary_contact_email,
            self.email,
            *self.portal_user_emails,
        ]
        return [e for e in emails if e]

    @classmethod
    def from_document(cls, doc: dict) -> 'Vendor':
        portal = doc.get('portalAccess') or {}
        contact = doc.get('primaryContact') or {}
        users = doc.get('portalUsers') or []
        total_orders = coerce_number(doc.get('totalOrders'))
        return cls(
            id=doc['_id'],
            company_name=doc.get('companyName'),
            pricing_tier=doc.get('pricingTier'),
            custom_discount_percentage=coerce_number(doc.get('customDiscountPercentage')),
            portal_access=PortalAccess(
                enabled=portal.get('enabled'),
                email=_clean_str(portal.get('email')),
            ),
            primary_contact_email=_clean_str(contact.get('email')),
            email=_clean_str(doc.get('email')),
            portal_user_emails=[
                e for e in (_clean_str((u or {}).get('email')) for u in users) if e
            ],
            status=doc.get('status'),
            payment_terms=doc.get('paymentTerms'),
            credit_limit=coerce_number(doc.get('creditLimit')),
            current_balance=coerce_number(doc.get('currentBalance')),
            total_orders=int(total_orders) if total_orders is not None else None,
            total_revenue=coerce_number(doc.get('totalRevenue')),
            last_order_date=doc.get('lastOrderDate'),
        )


@dataclass
class TierPriceEntry:
    """A labelled custom tier price on a product."""
    label: Optional[str] = None
    price: Optional[float] = None


@dataclass
class ProductPricing:
    """Pricing and availability snapshot of a catalog product."""
    id: str
    title: Optional[str] = None
    slug: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    wholesale_price_standard: Optional[float] = None
    wholesale_price_preferred: Optional[float] = None
    wholesale_price_platinum: Optional[float] = None
    pricing_tiers: list[TierPriceEntry] = field(default_factory=list)
    available_for_wholesale: Optional[bool] = None
    status: Optional[str] = None
    availability: Optional[str] = None
    category_ids: list[str] = field(default_factory=list)

    @property
    def in_stock(self) -> bool:
        return self.availability == 'in_stock'

    def named_tier_price(self, tier: str) -> Optional[float]:
        """The named wholesale price field for ``tier``, if set."""
        return {
            'standard': self.wholesale_price_standard,
            'preferred': self.wholesale_price_preferred,
            'platinum': self.wholesale_price_platinum,
        }.get(tier)

    @classmethod
    def from_document(cls, doc: dict) -> 'ProductPricing':
        slug = doc.get('slug')
        if isinstance(slug, dict):
            slug = slug.get('current')
        return cls(
            id=doc['_id'],
            title=doc.get('title'),
            slug=slug,
            sku=doc.get('sku'),
            price=coerce_number(doc.get('price')),
            wholesale_price_standard=coerce_number(doc.get('wholesalePriceStandard')),
            wholesale_price_preferred=coerce_number(doc.get('wholesalePricePreferred')),
            wholesale_price_platinum=coerce_number(doc.get('wholesalePricePlatinum')),
            pricing_tiers=[
                TierPriceEntry(label=(e or {}).get('label'), price=coerce_number((e or {}).get('price')))
                for e in (doc.get('pricingTiers') or [])
                if e
            ],
            available_for_wholesale=doc.get('availableForWholesale'),
            status=doc.get('status'),
            availability=doc.get('availability'),
            category_ids=list(doc.get('categoryIds') or []),
        )


@dataclass
class CartItemInput:
    """A requested cart line. ``quantity`` is normalized during pricing."""
    product_id: str
    quantity: Optional[float] = None


@dataclass
class PricedCartItem:
    """A cart line after tier-based unit price resolution."""
    product_id: str
    name: Optional[str]
    sku: Optional[str]
    quantity: int
    unit_price: float
    line_total: float
    effective_tier: str
    in_stock: bool
    # Raw reference prices, for display only
    standard_price: Optional[float] = None
    preferred_price: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "lineTotal": self.line_total,
            "standardPrice": self.standard_price,
            "preferredPrice": self.preferred_price,
            "effectiveTier": self.effective_tier,
            "inStock": self.in_stock,
        }


@dataclass
class Totals:
    """Order totals. All values are 2-decimal money."""
    subtotal: float
    tax: float
    shipping: float
    total: float

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }


@dataclass
class OrderCartLine:
    """A priced cart line embedded into an order, with its own unique key."""
    key: str
    product_id: str
    name: Optional[str]
    sku: Optional[str]
    quantity: int
    price: float
    line_total: float

    def to_document(self) -> dict:
        return {
            "_type": "orderCartItem",
            "_key": self.key,
            "name": self.name,
            "sku": self.sku,
            "productRef": {"_type": "reference", "_ref": self.product_id},
            "quantity": self.quantity,
            "price": self.price,
            "lineTotal": self.line_total,
            "total": self.line_total,
        }


@dataclass
class Order:
    """A placed wholesale order."""
    order_number: str
    vendor_id: str
    customer_name: Optional[str]
    customer_email: Optional[str]
    cart: list[OrderCartLine]
    totals: Totals
    created_at: str
    status: str = 'paid'
    workflow_status: str = 'requested'
    order_type: str = 'wholesale'
    currency: str = 'USD'
    id: Optional[str] = None

    def to_document(self) -> dict:
        doc = {
            "_type": "order",
            "orderNumber": self.order_number,
            "orderType": self.order_type,
            "status": self.status,
            "currency": self.currency,
            "wholesaleDetails": {"workflowStatus": self.workflow_status},
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerRef": {"_type": "reference", "_ref": self.vendor_id},
            "cart": [line.to_document() for line in self.cart],
            "amountSubtotal": self.totals.subtotal,
            "amountTax": self.totals.tax,
            "amountShipping": self.totals.shipping,
            "totalAmount": self.totals.total,
            "createdAt": self.created_at,
        }
        if self.id:
            doc["_id"] = self.id
        return doc

    def summary(self) -> dict:
        """The order fields returned to the caller after placement."""
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "totalAmount": self.totals.total,
            "status": self.status,
            "workflowStatus": self.workflow_status,
        }


@dataclass
class TierResolution:
    """Effective tier for a request. ``custom_discount`` is set only for 'custom'."""
    tier: str
    custom_discount: Optional[float] = None


@dataclass
class Request:
    """A wholesale pricing or order request with caller context."""
    items: list[CartItemInput]
    vendor_id: Optional[str] = None
    vendor_email: Optional[str] = None
    authorization: Optional[str] = None
    pricing_tier: Optional[str] = None
    shipping: Optional[float] = None
    tax_rate: Optional[float] = None


@dataclass
class Quote:
    """A fully priced cart for an authenticated vendor."""
    vendor: Vendor
    tier: TierResolution
    cart: list[PricedCartItem]
    totals: Totals

    def to_dict(self) -> dict:
        return {
            "cart": [item.to_dict() for item in self.cart],
            "totals": self.totals.to_dict(),
            "vendor": {
                "id": self.vendor.id,
                "tier": self.tier.tier,
                "email": self.vendor.contact_email,
            },
        }
