"""Directory and History Store adapters (SQLAlchemy and in-memory)."""

from routing_kernel.selectors.base import BaseSelector
from routing_kernel.selectors.directory_selector import SqlDirectory
from routing_kernel.selectors.history_selector import SqlHistoryStore
from routing_kernel.selectors.memory import InMemoryDirectory, InMemoryHistoryStore

__all__ = [
    "BaseSelector",
    "InMemoryDirectory",
    "InMemoryHistoryStore",
    "SqlDirectory",
    "SqlHistoryStore",
]
