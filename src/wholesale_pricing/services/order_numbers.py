"""
Order Number Generator - short human-readable order ids (``FAS-######``).

Candidates are drawn at random and checked against existing orders and
invoices. The check is not atomic: two requests can race onto the same number
before either persists. Placement closes that gap by creating the order with
a store-level uniqueness key and regenerating on ``DuplicateKeyError``.
"""
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import StoreError
from ..store.base import WholesaleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderNumberPolicy:
    """Retry policy for order number generation."""
    prefix: str = 'FAS'
    digits: int = 6
    max_attempts: int = 8
    # Create-time uniqueness conflicts tolerated before giving up
    max_conflict_retries: int = 3

    @property
    def space(self) -> int:
        return 10 ** self.digits

    def format(self, value: int) -> str:
        return f"{self.prefix}-{value % self.space:0{self.digits}d}"


class OrderNumberGenerator:
    """
    Generates order numbers under an ``OrderNumberPolicy``.

    ``rng`` and ``clock`` are injectable so collisions and the time-derived
    fallback can be exercised deterministically.
    """

    def __init__(
        self,
        store: WholesaleStore,
        policy: Optional[OrderNumberPolicy] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.policy = policy or OrderNumberPolicy()
        self.rng = rng or random.SystemRandom()
        self.clock = clock

    def random_candidate(self) -> str:
        return self.policy.format(self.rng.randrange(self.policy.space))

    def fallback_candidate(self) -> str:
        """Time-derived candidate: epoch milliseconds modulo the number space."""
        return self.policy.format(int(self.clock() * 1000))

    async def generate(self) -> str:
        for attempt in range(1, self.policy.max_attempts + 1):
            candidate = self.random_candidate()
            try:
                existing = await self.store.count_order_number(candidate)
            except StoreError:
                logger.warning("Order number collision check failed, using time-derived fallback", exc_info=True)
                return self.fallback_candidate()
            if not existing:
                return candidate
            logger.debug("Order number %s already taken (attempt %d)", candidate, attempt)

        fallback = self.fallback_candidate()
        logger.warning(
            "All %d order number candidates collided, falling back to %s",
            self.policy.max_attempts, fallback,
        )
        return fallback
