"""Store subpackage - document store interface and in-memory implementation."""
from .base import Patch, WholesaleStore
from .memory import InMemoryStore

__all__ = ['Patch', 'WholesaleStore', 'InMemoryStore']
