"""Per-identity limiter configuration backed by the key-value store.

An operator can give a single API key its own quota by storing a JSON
document such as ``{"limit": 500, "window_seconds": 60}`` under the key
itself in the ``rate_limit_config`` namespace. Keys without an override
use the process-wide default.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from edge_gateway.adapters.rate_limit.base import RateLimiterConfig
from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.core.errors import StorageUnavailableError
from edge_gateway.core.logging import fingerprint

logger = logging.getLogger(__name__)


class RateLimitConfigResolver:
    """Resolve the effective ``RateLimiterConfig`` for an identity."""

    def __init__(
        self,
        default: RateLimiterConfig,
        store: AbstractKeyValueStore | None = None,
    ) -> None:
        self.default = default
        self._store = store

    async def resolve(self, identity: str) -> RateLimiterConfig:
        if self._store is None:
            return self.default

        try:
            raw = await self._store.get(identity)
        except StorageUnavailableError as exc:
            logger.warning(
                "rate_limit.config_lookup_failed",
                extra={"identity_hash": fingerprint(identity), "error_code": exc.code},
            )
            return self.default

        if raw is None:
            return self.default

        try:
            return RateLimiterConfig.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "rate_limit.config_invalid",
                extra={
                    "identity_hash": fingerprint(identity),
                    "error_count": exc.error_count(),
                },
            )
            return self.default
