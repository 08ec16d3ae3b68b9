"""
Order Persistence - writes wholesale orders and updates the vendor ledger.

Order creation and the ledger update are two sequential writes, not one
transaction. A failed ledger update leaves the order in place without being
reflected in the vendor aggregates; it is logged and raised as
``ReconciliationRequired`` so the gap stays visible.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from ..engine.models import Order, OrderCartLine, PricedCartItem, Totals, Vendor
from ..errors import ReconciliationRequired, StoreError
from ..store.base import Patch, WholesaleStore

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def build_order_cart(cart: list[PricedCartItem]) -> list[OrderCartLine]:
    """Order cart lines, each with a fresh unique key."""
    return [
        OrderCartLine(
            key=uuid.uuid4().hex,
            product_id=item.product_id,
            name=item.name,
            sku=item.sku,
            quantity=item.quantity,
            price=item.unit_price,
            line_total=item.line_total,
        )
        for item in cart
    ]


class OrderPersistence:
    """Creates order documents and applies ledger increments."""

    def __init__(self, store: WholesaleStore, now: Callable[[], str] = utc_now_iso):
        self.store = store
        self.now = now

    def build_order(
        self,
        vendor: Vendor,
        cart: list[PricedCartItem],
        totals: Totals,
        order_number: str,
        created_at: Optional[str] = None,
    ) -> Order:
        return Order(
            order_number=order_number,
            vendor_id=vendor.id,
            customer_name=vendor.company_name,
            customer_email=vendor.contact_email,
            cart=build_order_cart(cart),
            totals=totals,
            created_at=created_at or self.now(),
        )

    async def create_order(self, order: Order) -> Order:
        """Write the order. Raises ``DuplicateKeyError`` if the order number is taken."""
        created = await self.store.create(order.to_document(), unique_on='orderNumber')
        order.id = created['_id']
        logger.info("Created wholesale order %s (%s) for vendor %s", order.order_number, order.id, order.vendor_id)
        return order

    async def update_ledger(self, vendor: Vendor, order: Order) -> dict:
        """Increment the vendor's order count, revenue and balance in one atomic patch."""
        patch = Patch(
            set_if_missing={'totalOrders': 0, 'totalRevenue': 0, 'currentBalance': 0},
            set={'lastOrderDate': order.created_at},
            inc={
                'totalOrders': 1,
                'totalRevenue': order.totals.total,
                'currentBalance': order.totals.total,
            },
        )
        return await self.store.patch(vendor.id, patch)

    async def persist(self, vendor: Vendor, order: Order) -> Order:
        order = await self.create_order(order)
        try:
            await self.update_ledger(vendor, order)
        except StoreError as exc:
            logger.error(
                "Ledger update failed for vendor %s after creating order %s; needs reconciliation",
                vendor.id, order.order_number, exc_info=True,
            )
            raise ReconciliationRequired(
                f"Order {order.order_number} created but vendor ledger was not updated",
                order_number=order.order_number,
            ) from exc
        return order
