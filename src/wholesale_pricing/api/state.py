"""
Process-wide service wiring.

The entry point owns the store: it is built once from settings, seeded from
the CSV exports and injected into every component.
"""
import logging
from typing import Optional

from ..config.settings import get_settings, Settings
from ..data.load_catalog import build_seed_documents
from ..policy.vendor_resolver import VendorResolver
from ..services.order_numbers import OrderNumberGenerator, OrderNumberPolicy
from ..services.wholesale_service import WholesaleService
from ..store.memory import InMemoryStore

logger = logging.getLogger(__name__)

_service: Optional[WholesaleService] = None


def build_service(settings: Optional[Settings] = None, store: Optional[InMemoryStore] = None) -> WholesaleService:
    """Build a fully wired service. Seeds a fresh in-memory store when none is given."""
    settings = settings or get_settings()

    if store is None:
        store = InMemoryStore()
        documents, report = build_seed_documents(settings)
        store.seed(documents)
        logger.info("Store seeded with %d documents (%s)", len(documents), report["status"])

    policy = OrderNumberPolicy(
        prefix=settings.order_number_prefix,
        max_attempts=settings.order_number_attempts,
        max_conflict_retries=settings.order_conflict_retries,
    )
    return WholesaleService(
        store,
        vendor_resolver=VendorResolver(store, draft_prefix=settings.draft_prefix),
        order_numbers=OrderNumberGenerator(store, policy),
        timeout_seconds=settings.request_timeout_seconds or None,
    )


def get_service() -> WholesaleService:
    """Get the global service instance."""
    global _service
    if _service is None:
        _service = build_service()
    return _service
