"""Response cache for slow-changing GET endpoints.

Responses are stored in a key-value namespace under
``cache:{path}:{accept}:{accept-encoding}`` with a per-route lifetime.
A request carrying ``Cache-Control: no-cache`` bypasses the cache in both
directions. Store faults and timeouts degrade to a cache miss.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request, Response

from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

Renderer = Callable[[], Awaitable[Response]]

# Accept / Accept-Encoding combinations purged and warmed for each path
CACHE_VARIANTS: tuple[tuple[str, str], ...] = (
    ("application/json", ""),
    ("application/json", "gzip"),
    ("application/json", "br"),
)

# Headers replayed from a cached response
_REPLAYED_HEADERS = ("content-type",)


@dataclass(frozen=True)
class CacheRoute:
    path: str
    ttl_seconds: int
    render: Renderer


@dataclass
class WarmResult:
    endpoint: str
    success: bool
    cached: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "endpoint": self.endpoint,
            "success": self.success,
            "cached": self.cached,
        }
        if self.error:
            data["error"] = self.error
        return data


class ResponseCache:
    """Get/put wrapper around a key-value store for whole responses."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        bypass_directive: str = "no-cache",
        operation_timeout_seconds: float = 3.0,
    ) -> None:
        self._store = store
        self._bypass_directive = bypass_directive
        self._timeout = operation_timeout_seconds
        self._routes: dict[str, CacheRoute] = {}

    def register(self, path: str, *, ttl_seconds: int, render: Renderer) -> None:
        """Declare a cacheable route so it can be warmed and purged."""
        self._routes[path] = CacheRoute(path=path, ttl_seconds=ttl_seconds, render=render)

    @property
    def paths(self) -> list[str]:
        return sorted(self._routes)

    @staticmethod
    def cache_key(path: str, accept: str = "", accept_encoding: str = "") -> str:
        return f"cache:{path}:{accept}:{accept_encoding}"

    def _key_for(self, request: Request) -> str:
        return self.cache_key(
            request.url.path,
            request.headers.get("accept", ""),
            request.headers.get("accept-encoding", ""),
        )

    def bypassed(self, request: Request) -> bool:
        return self._bypass_directive in request.headers.get("cache-control", "").lower()

    async def lookup(self, request: Request) -> Response | None:
        """Return the cached response for this request, or None on a miss."""
        if self.bypassed(request):
            return None

        try:
            raw = await asyncio.wait_for(self._store.get(self._key_for(request)), self._timeout)
        except (StorageUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning(
                "cache.lookup_failed",
                extra={"path": request.url.path, "error_type": type(exc).__name__},
            )
            return None

        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            response = Response(
                content=entry["body"],
                status_code=entry["status"],
                headers=entry.get("headers") or {},
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("cache.entry_corrupt", extra={"path": request.url.path})
            return None

        response.headers["X-Cache"] = "HIT"
        logger.debug("cache.hit", extra={"path": request.url.path})
        return response

    async def _put(self, key: str, response: Response, ttl_seconds: int) -> bool:
        entry = {
            "body": bytes(response.body).decode("utf-8"),
            "status": response.status_code,
            "headers": {
                name: value
                for name, value in response.headers.items()
                if name.lower() in _REPLAYED_HEADERS
            },
        }
        try:
            await asyncio.wait_for(
                self._store.put(key, json.dumps(entry), ttl_seconds=ttl_seconds),
                self._timeout,
            )
        except (StorageUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning(
                "cache.store_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__},
            )
            return False
        return True

    async def store(self, request: Request, response: Response, *, ttl_seconds: int) -> Response:
        """Cache a successful response and tag it with cache headers."""
        if self.bypassed(request) or response.status_code >= 400:
            return response

        await self._put(self._key_for(request), response, ttl_seconds)
        response.headers["Cache-Control"] = f"public, max-age={ttl_seconds}"
        response.headers["X-Cache"] = "MISS"
        return response

    async def purge(self, path: str) -> bool:
        """Delete every cached variant of ``path``. Returns True if any existed."""
        results = await asyncio.gather(
            *(self._store.delete(self.cache_key(path, a, e)) for a, e in CACHE_VARIANTS)
        )
        purged = any(results)
        logger.info("cache.purge", extra={"path": path, "purged": purged})
        return purged

    async def warm(self, path: str) -> WarmResult:
        """Render a registered route and store it under every variant."""
        route = self._routes.get(path)
        if route is None:
            return WarmResult(endpoint=path, success=False, error="Path is not cacheable")

        try:
            already_cached = await self._store.get(self.cache_key(path, *CACHE_VARIANTS[0])) is not None
            response = await route.render()
        except StorageUnavailableError as exc:
            logger.error("cache.warm_failed", extra={"path": path, "error_code": exc.code})
            return WarmResult(endpoint=path, success=False, error=exc.message)

        if response.status_code >= 400:
            return WarmResult(
                endpoint=path,
                success=False,
                error=f"Renderer returned HTTP {response.status_code}",
            )

        stored = [
            await self._put(self.cache_key(path, a, e), response, route.ttl_seconds)
            for a, e in CACHE_VARIANTS
        ]
        if not all(stored):
            return WarmResult(endpoint=path, success=False, cached=already_cached, error="Cache write failed")
        return WarmResult(endpoint=path, success=True, cached=already_cached)
