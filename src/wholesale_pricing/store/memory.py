"""
In-memory document store.

Holds documents keyed by ``_id`` and serialises writes with an asyncio lock,
so patch increments are atomic with respect to concurrent requests. Used by
the API entry point (seeded from CSV) and by the tests.
"""
import asyncio
import copy
import logging
import uuid
from typing import Iterable, Optional

from ..errors import DuplicateKeyError, StoreError
from .base import Patch, WholesaleStore

logger = logging.getLogger(__name__)

ORDER_NUMBER_TYPES = ('order', 'invoice')


def _lower(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None


def _vendor_emails(doc: dict) -> list[str]:
    emails = [
        (doc.get('portalAccess') or {}).get('email'),
        (doc.get('primaryContact') or {}).get('email'),
        doc.get('email'),
    ]
    emails.extend((user or {}).get('email') for user in doc.get('portalUsers') or [])
    return [e for e in (_lower(e) for e in emails) if e]


def _is_wholesale_product(doc: dict) -> bool:
    return (
        doc.get('_type') == 'product'
        and doc.get('availableForWholesale') is True
        and doc.get('status') == 'active'
    )


class InMemoryStore(WholesaleStore):
    """A process-local ``WholesaleStore``."""

    def __init__(self, documents: Optional[Iterable[dict]] = None):
        self._docs: dict[str, dict] = {}
        self._lock = asyncio.Lock()
        if documents:
            self.seed(documents)

    def seed(self, documents: Iterable[dict]) -> int:
        """Load documents synchronously (startup and tests). Returns the count loaded."""
        count = 0
        for doc in documents:
            doc = copy.deepcopy(doc)
            doc.setdefault('_id', uuid.uuid4().hex)
            self._docs[doc['_id']] = doc
            count += 1
        return count

    def get(self, doc_id: str) -> Optional[dict]:
        doc = self._docs.get(doc_id)
        return copy.deepcopy(doc) if doc else None

    def _of_type(self, doc_type: str) -> list[dict]:
        return [d for d in self._docs.values() if d.get('_type') == doc_type]

    async def find_vendor(self, vendor_id, email):
        vendors = self._of_type('vendor')
        if vendor_id:
            for doc in vendors:
                if doc['_id'] == vendor_id:
                    return copy.deepcopy(doc)
        email = _lower(email)
        if email:
            for doc in vendors:
                if email in _vendor_emails(doc):
                    return copy.deepcopy(doc)
        return None

    async def fetch_wholesale_products(self, ids):
        wanted = set(ids)
        return [
            copy.deepcopy(d) for d in self._of_type('product')
            if d['_id'] in wanted and _is_wholesale_product(d)
        ]

    async def list_wholesale_products(self, category_id=None):
        products = [d for d in self._of_type('product') if _is_wholesale_product(d)]
        if category_id:
            products = [d for d in products if category_id in (d.get('categoryIds') or [])]
        products.sort(key=lambda d: (d.get('title') or ''))
        return copy.deepcopy(products)

    async def get_product_by_slug(self, slug):
        for doc in self._of_type('product'):
            current = doc.get('slug')
            if isinstance(current, dict):
                current = current.get('current')
            if current == slug:
                return copy.deepcopy(doc)
        return None

    def _order_number_matches(self, value: str) -> int:
        count = 0
        for doc in self._docs.values():
            if doc.get('_type') not in ORDER_NUMBER_TYPES:
                continue
            if doc.get('orderNumber') == value:
                count += 1
            elif doc.get('_type') == 'invoice' and doc.get('invoiceNumber') == value:
                count += 1
        return count

    async def count_order_number(self, order_number):
        return self._order_number_matches(order_number)

    async def list_vendor_orders(self, vendor_id):
        orders = [
            d for d in self._of_type('order')
            if d.get('orderType') == 'wholesale'
            and (d.get('customerRef') or {}).get('_ref') == vendor_id
        ]
        orders.sort(key=lambda d: d.get('createdAt') or '', reverse=True)
        return copy.deepcopy(orders)

    async def create(self, document, unique_on=None):
        async with self._lock:
            doc = copy.deepcopy(document)
            if unique_on:
                value = doc.get(unique_on)
                if value is not None and self._order_number_matches(value):
                    raise DuplicateKeyError(unique_on, value)
            doc.setdefault('_id', uuid.uuid4().hex)
            if doc['_id'] in self._docs:
                raise DuplicateKeyError('_id', doc['_id'])
            self._docs[doc['_id']] = doc
            logger.debug("Created %s document %s", doc.get('_type'), doc['_id'])
            return copy.deepcopy(doc)

    async def patch(self, doc_id, patch: Patch):
        async with self._lock:
            doc = self._docs.get(doc_id)
            if doc is None:
                raise StoreError(f"Document {doc_id} does not exist")
            for key, value in patch.set_if_missing.items():
                if doc.get(key) is None:
                    doc[key] = value
            doc.update(patch.set)
            for key, amount in patch.inc.items():
                current = doc.get(key)
                if not isinstance(current, (int, float)):
                    raise StoreError(f"Cannot increment non-numeric field {key} on {doc_id}")
                doc[key] = current + amount
            return copy.deepcopy(doc)
