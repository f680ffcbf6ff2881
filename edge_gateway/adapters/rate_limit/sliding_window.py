"""Weighted sliding-window rate limiter over a key-value store.

Approximates a true sliding window with two fixed-window counters: the
exact count of the current window plus a time-proportional share of the
previous window's count (truncated toward zero). Counters are stored as
decimal strings under ``{identity}:{window_index}`` and expire after two
windows, so stale windows never need explicit cleanup.

Notes:
- Evaluations for the same identity are serialized inside one limiter
  instance (one asyncio lock per identity). Different identities never
  contend.
- Across processes the read-then-write is not atomic; several gateway
  workers sharing one store can overshoot the limit by roughly one request
  per concurrently evaluating worker.
- Storage faults fail open with a DEGRADED decision.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
import weakref
from typing import Callable

from edge_gateway.adapters.rate_limit.base import (
    AbstractRateLimiter,
    DecisionOutcome,
    RateLimitDecision,
    RateLimiterConfig,
    RateWindowState,
)
from edge_gateway.adapters.rate_limit.overrides import RateLimitConfigResolver
from edge_gateway.adapters.rate_limit.windows import (
    counter_key,
    previous_window_weight,
    window_index,
    window_reset_at,
)
from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.core.errors import InvalidIdentityError, StorageUnavailableError
from edge_gateway.core.logging import fingerprint

logger = logging.getLogger(__name__)


class WeightedSlidingWindowRateLimiter(AbstractRateLimiter):
    """Per-identity limiter using the weighted dual-window estimator."""

    def __init__(
        self,
        *,
        store: AbstractKeyValueStore,
        config: RateLimiterConfig | None = None,
        resolver: RateLimitConfigResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store (one record per identity and window).
            config: Default quota; ignored when ``resolver`` is given.
            resolver: Source of per-identity quota overrides.
            clock: Time source returning UNIX time in seconds.
        """
        self._store = store
        self._resolver = resolver or RateLimitConfigResolver(config or RateLimiterConfig())
        self._clock = clock
        self._owners: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def default_config(self) -> RateLimiterConfig:
        return self._resolver.default

    def _owner_lock(self, identity: str) -> asyncio.Lock:
        # Dropped automatically once no evaluation holds or awaits it
        lock = self._owners.get(identity)
        if lock is None:
            lock = asyncio.Lock()
            self._owners[identity] = lock
        return lock

    async def evaluate(self, identity: str, now: float | None = None) -> RateLimitDecision:
        """Admit or deny one request for ``identity``.

        On admission the current window's counter is incremented and
        persisted; a denied request is not counted.

        Args:
            identity: Non-empty caller identity (e.g., API key).
            now: UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            RateLimitDecision; DEGRADED when the counter store failed.

        Raises:
            InvalidIdentityError: If identity is empty or whitespace.
        """
        if not identity or not identity.strip():
            raise InvalidIdentityError(
                code="invalid_identity",
                message="Rate limit identity must be a non-empty string",
            )

        if now is None:
            now = self._clock()

        config = await self._resolver.resolve(identity)
        current = window_index(now, config.window_seconds)
        reset_at = window_reset_at(current, config.window_seconds)

        async with self._owner_lock(identity):
            try:
                return await self._evaluate_owned(identity, now, current, config)
            except StorageUnavailableError as exc:
                logger.warning(
                    "rate_limit.storage_unavailable",
                    extra={
                        "identity_hash": fingerprint(identity),
                        "error_code": exc.code,
                        "error_message": exc.message,
                        "fail_open": True,
                    },
                )
                return RateLimitDecision.degraded_for(limit=config.limit, reset_at=reset_at)

    async def _evaluate_owned(
        self,
        identity: str,
        now: float,
        current: int,
        config: RateLimiterConfig,
    ) -> RateLimitDecision:
        window = config.window_seconds
        reset_at = window_reset_at(current, window)

        raw_current, raw_previous = await asyncio.gather(
            self._store.get(counter_key(identity, current)),
            self._store.get(counter_key(identity, current - 1)),
        )
        current_state = RateWindowState.decode(raw_current, current)
        previous_state = RateWindowState.decode(raw_previous, current - 1)

        weight = previous_window_weight(now, current, window)
        estimated = current_state.count + math.floor(previous_state.count * weight)

        if estimated >= config.limit:
            retry_after = max(0, math.ceil(reset_at - now))
            logger.info(
                "rate_limit.denied",
                extra={
                    "identity_hash": fingerprint(identity),
                    "estimated": estimated,
                    "current_count": current_state.count,
                    "previous_count": previous_state.count,
                    "limit": config.limit,
                    "retry_after_s": retry_after,
                },
            )
            return RateLimitDecision(
                outcome=DecisionOutcome.DENIED,
                limit=config.limit,
                remaining=0,
                reset_at=reset_at,
                retry_after_seconds=retry_after,
            )

        updated = RateWindowState(count=current_state.count + 1, window_index=current)
        await self._store.put(
            counter_key(identity, current),
            updated.encode(),
            ttl_seconds=2 * window,
        )

        remaining = config.limit - estimated - 1
        logger.debug(
            "rate_limit.allowed",
            extra={
                "identity_hash": fingerprint(identity),
                "estimated": estimated + 1,
                "limit": config.limit,
                "remaining": remaining,
            },
        )
        return RateLimitDecision(
            outcome=DecisionOutcome.ALLOWED,
            limit=config.limit,
            remaining=remaining,
            reset_at=reset_at,
        )
