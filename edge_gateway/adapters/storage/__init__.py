"""Key-value storage adapters.

The gateway keeps API keys, rate limit counters, per-key limiter overrides
and cached responses in separate namespaces of a small key-value store.
"""

from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.adapters.storage.in_memory import InMemoryKeyValueStore

__all__ = ["AbstractKeyValueStore", "InMemoryKeyValueStore"]
