"""
Order persistence tests: document shape, vendor ledger updates and the
partial-failure path.
"""
import asyncio

import pytest

from wholesale_pricing.engine.models import PricedCartItem, Totals, Vendor
from wholesale_pricing.errors import DuplicateKeyError, ReconciliationRequired, StoreError
from wholesale_pricing.services.order_service import OrderPersistence, build_order_cart
from wholesale_pricing.store.memory import InMemoryStore

CREATED_AT = '2026-01-15T10:00:00Z'


def priced(product_id='p1', quantity=2, unit_price=80.0):
    return PricedCartItem(
        product_id=product_id, name='Cold Air Intake', sku='CAI-1', quantity=quantity,
        unit_price=unit_price, line_total=round(unit_price * quantity, 2),
        effective_tier='standard', in_stock=True,
    )


class LedgerDownStore(InMemoryStore):
    async def patch(self, doc_id, patch):
        raise StoreError("write rejected")


@pytest.fixture
def persistence(store):
    return OrderPersistence(store, now=lambda: CREATED_AT)


def vendor_from(store, vendor_id):
    return Vendor.from_document(store.get(vendor_id))


def test_order_cart_lines_get_unique_keys():
    lines = build_order_cart([priced(), priced(), priced('p2', 1, 44.5)])
    assert len({line.key for line in lines}) == 3
    assert [line.price for line in lines] == [80.0, 80.0, 44.5]


@pytest.mark.asyncio
async def test_order_document_shape(store, persistence):
    vendor = vendor_from(store, 'v-standard')
    order = persistence.build_order(vendor, [priced()], Totals(160.0, 0.0, 0.0, 160.0), 'FAS-000001')
    order = await persistence.persist(vendor, order)

    doc = store.get(order.id)
    assert doc['_type'] == 'order'
    assert doc['orderNumber'] == 'FAS-000001'
    assert doc['orderType'] == 'wholesale'
    assert doc['status'] == 'paid'
    assert doc['currency'] == 'USD'
    assert doc['wholesaleDetails'] == {'workflowStatus': 'requested'}
    assert doc['customerName'] == 'Speed Shop'
    assert doc['customerEmail'] == 'orders@speedshop.example'
    assert doc['customerRef'] == {'_type': 'reference', '_ref': 'v-standard'}
    assert doc['amountSubtotal'] == 160.0
    assert doc['totalAmount'] == 160.0
    assert doc['createdAt'] == CREATED_AT

    line = doc['cart'][0]
    assert line['_type'] == 'orderCartItem'
    assert line['productRef'] == {'_type': 'reference', '_ref': 'p1'}
    assert line['quantity'] == 2
    assert line['price'] == 80.0
    assert line['lineTotal'] == line['total'] == 160.0


@pytest.mark.asyncio
async def test_ledger_initialized_from_unset(store, persistence):
    vendor = vendor_from(store, 'v-standard')
    order = persistence.build_order(vendor, [priced()], Totals(160.0, 0.0, 0.0, 160.0), 'FAS-000002')
    await persistence.persist(vendor, order)

    doc = store.get('v-standard')
    assert doc['totalOrders'] == 1
    assert doc['totalRevenue'] == 160.0
    assert doc['currentBalance'] == 160.0
    assert doc['lastOrderDate'] == CREATED_AT


@pytest.mark.asyncio
async def test_ledger_increments_existing_values(store, persistence):
    vendor = vendor_from(store, 'v-custom')
    order = persistence.build_order(vendor, [priced()], Totals(160.0, 0.0, 10.0, 170.0), 'FAS-000003')
    await persistence.persist(vendor, order)

    doc = store.get('v-custom')
    assert doc['totalOrders'] == 3
    assert doc['totalRevenue'] == 670.0
    assert doc['currentBalance'] == 290.0


@pytest.mark.asyncio
async def test_concurrent_ledger_updates_are_not_lost(store, persistence):
    vendor = vendor_from(store, 'v-standard')
    orders = [
        persistence.build_order(vendor, [priced()], Totals(10.0, 0.0, 0.0, 10.0), f'FAS-00010{i}')
        for i in range(5)
    ]
    await asyncio.gather(*(persistence.persist(vendor, order) for order in orders))

    doc = store.get('v-standard')
    assert doc['totalOrders'] == 5
    assert doc['totalRevenue'] == 50.0
    assert len(await store.list_vendor_orders('v-standard')) == 5


@pytest.mark.asyncio
async def test_ledger_failure_requires_reconciliation():
    store = LedgerDownStore([{'_id': 'v1', '_type': 'vendor', 'companyName': 'Shop'}])
    persistence = OrderPersistence(store, now=lambda: CREATED_AT)
    vendor = vendor_from(store, 'v1')
    order = persistence.build_order(vendor, [priced()], Totals(160.0, 0.0, 0.0, 160.0), 'FAS-000004')

    with pytest.raises(ReconciliationRequired) as exc_info:
        await persistence.persist(vendor, order)

    assert exc_info.value.order_number == 'FAS-000004'
    assert exc_info.value.status_code == 500
    # The order stays written
    assert await store.count_order_number('FAS-000004') == 1


@pytest.mark.asyncio
async def test_create_rejects_taken_order_number(store, persistence):
    store.seed([{'_type': 'invoice', 'invoiceNumber': 'FAS-000005'}])
    vendor = vendor_from(store, 'v-standard')
    order = persistence.build_order(vendor, [priced()], Totals(160.0, 0.0, 0.0, 160.0), 'FAS-000005')

    with pytest.raises(DuplicateKeyError):
        await persistence.persist(vendor, order)
    assert store.get('v-standard').get('totalOrders') is None
