"""In-memory key-value store with per-entry expiry.

Notes:
- Per-process only: running multiple workers gives each its own keyspace.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from edge_gateway.adapters.storage.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: str
    expires_at: float | None


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dict-backed store; expired entries are evicted lazily on access."""

    def __init__(
        self,
        namespace: str = "default",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            namespace: Label used in logs and stats (one store per namespace).
            clock: Time source returning UNIX time in seconds.
        """
        self.namespace = namespace
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryKeyValueStore(namespace={self.namespace!r}, size={len(self._entries)})"

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                self._evict_locked(key)
                return None
            return entry.value

    async def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        with self._lock:
            now = self._clock()
            self._evict_expired_locked(now)
            expires_at = now + ttl_seconds if ttl_seconds is not None else None
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

        logger.debug(
            "kv.put",
            extra={"namespace": self.namespace, "ttl_s": ttl_seconds},
        )

    async def delete(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return False
            return not self._is_expired(entry, self._clock())

    def stats(self) -> dict[str, int | str]:
        """Return entry and eviction counts without exposing values."""

        with self._lock:
            return {
                "namespace": self.namespace,
                "entries": len(self._entries),
                "evictions": self._evictions,
            }

    @staticmethod
    def _is_expired(entry: _Entry, now: float) -> bool:
        return entry.expires_at is not None and now >= entry.expires_at

    def _evict_locked(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._evictions += 1

    def _evict_expired_locked(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            self._evict_locked(key)
