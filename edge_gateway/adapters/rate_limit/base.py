"""Rate limiter interfaces and value types.

The HTTP layer depends on ``AbstractRateLimiter`` only, so the counting
algorithm and the counter backend can change without touching routes.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class RateLimiterConfig(BaseModel):
    """Quota applied to one identity. Immutable once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    limit: int = Field(100, ge=1, description="Requests admitted per window")
    window_seconds: int = Field(60, ge=1, description="Window length in seconds")


class DecisionOutcome(str, enum.Enum):
    ALLOWED = "allowed"
    DENIED = "denied"
    # Counter store unreachable: request admitted without accounting
    DEGRADED = "degraded"


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one rate limit evaluation.

    Attributes:
        outcome: ALLOWED, DENIED or DEGRADED (fail-open).
        limit: Effective ceiling for the identity; None when it could not be
            resolved (evaluation timed out).
        remaining: Requests left in the window; 0 when denied, -1 when unknown.
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Suggested wait in seconds when denied.
    """

    outcome: DecisionOutcome
    limit: int | None
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is not DecisionOutcome.DENIED

    @property
    def degraded(self) -> bool:
        return self.outcome is DecisionOutcome.DEGRADED

    @classmethod
    def degraded_for(cls, *, limit: int | None, reset_at: int) -> "RateLimitDecision":
        """Fail-open decision used when counters cannot be read or written."""
        return cls(
            outcome=DecisionOutcome.DEGRADED,
            limit=limit,
            remaining=-1,
            reset_at=reset_at,
        )


@dataclass(frozen=True)
class RateWindowState:
    """Persisted counter of accepted requests for one (identity, window)."""

    count: int
    window_index: int

    @classmethod
    def decode(cls, raw: str | None, window_index: int) -> "RateWindowState":
        """Decode a stored decimal count; absent or garbled values count as zero."""
        if raw is None:
            return cls(count=0, window_index=window_index)
        try:
            count = int(raw)
        except (TypeError, ValueError):
            logger.warning(
                "rate_limit.garbled_counter",
                extra={"window_index": window_index, "raw_length": len(str(raw))},
            )
            return cls(count=0, window_index=window_index)
        return cls(count=max(0, count), window_index=window_index)

    def encode(self) -> str:
        return str(self.count)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def evaluate(self, identity: str, now: float | None = None) -> RateLimitDecision:
        """Decide whether one more request from ``identity`` is admitted.

        Args:
            identity: Non-empty caller identity (e.g., API key).
            now: UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            RateLimitDecision describing the outcome and quota metadata.

        Raises:
            InvalidIdentityError: If identity is empty.
        """
        raise NotImplementedError
