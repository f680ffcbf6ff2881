"""Per-endpoint request counters.

Counts every handled request by route path as total / success / error
(success meaning a status below 400). Owned by the app's service container.
"""

from __future__ import annotations

import threading

from edge_gateway.schemas.health import EndpointCounters


class RequestMetrics:
    """Thread-safe request counters keyed by endpoint path."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, EndpointCounters] = {}

    def record(self, endpoint: str, status_code: int) -> None:
        with self._lock:
            counters = self._counters.setdefault(endpoint, EndpointCounters())
            counters.total += 1
            if status_code < 400:
                counters.success += 1
            else:
                counters.error += 1

    def snapshot(self) -> dict[str, EndpointCounters]:
        """Return a copy of the current counters."""

        with self._lock:
            return {path: c.model_copy() for path, c in self._counters.items()}
