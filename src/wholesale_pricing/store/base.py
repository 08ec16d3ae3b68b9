"""
Document store collaborator interface.

The catalog, vendor and order records are owned by an external document
store. The core only talks to it through this interface; every call is a
coroutine. Implementations raise ``StoreError`` for backend failures so
callers can tell "unreachable" apart from "no match".
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Patch:
    """
    A document patch with set-if-missing / set / increment semantics.

    Implementations must apply the three parts atomically, in that order.
    """
    set_if_missing: dict[str, Any] = field(default_factory=dict)
    set: dict[str, Any] = field(default_factory=dict)
    inc: dict[str, float] = field(default_factory=dict)


class WholesaleStore(ABC):
    """Typed read access plus create/patch writes for wholesale documents."""

    @abstractmethod
    async def find_vendor(self, vendor_id: Optional[str], email: Optional[str]) -> Optional[dict]:
        """
        Find a vendor by id or by case-insensitive email.

        ``email`` is matched against the portal email, primary contact email,
        top-level email and every portal user email. An id match wins over an
        email match. Returns None when nothing matches.
        """

    @abstractmethod
    async def fetch_wholesale_products(self, ids: list[str]) -> list[dict]:
        """Products with the given ids that are wholesale-available and active."""

    @abstractmethod
    async def list_wholesale_products(self, category_id: Optional[str] = None) -> list[dict]:
        """All wholesale-available active products ordered by title."""

    @abstractmethod
    async def get_product_by_slug(self, slug: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def count_order_number(self, order_number: str) -> int:
        """Orders plus invoices already using ``order_number``."""

    @abstractmethod
    async def list_vendor_orders(self, vendor_id: str) -> list[dict]:
        """Wholesale orders of a vendor, newest first."""

    @abstractmethod
    async def create(self, document: dict, unique_on: Optional[str] = None) -> dict:
        """
        Create a document and return it with its assigned ``_id``.

        When ``unique_on`` names a field, the create fails with
        ``DuplicateKeyError`` if another order or invoice already holds the
        same value.
        """

    @abstractmethod
    async def patch(self, doc_id: str, patch: Patch) -> dict:
        """Apply ``patch`` to a document atomically and return the result."""
