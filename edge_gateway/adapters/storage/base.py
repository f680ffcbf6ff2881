"""Key-value store interface.

Counters, API keys, per-identity limiter configuration and cached responses
all live behind this abstraction so the in-memory backend can be replaced
by a shared store without touching the callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractKeyValueStore(ABC):
    """Async get/put/delete by string key with optional expiry.

    Implementations raise ``StorageUnavailableError`` when the backend
    cannot serve a call. Missing and expired keys are not errors.
    """

    namespace: str = "default"

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        """Store a value, replacing any previous one.

        Args:
            key: Record key.
            value: String payload.
            ttl_seconds: Expire the record this many seconds after the write
                (None keeps it until deleted).
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if a live record was deleted."""
        raise NotImplementedError
