"""Rate limiting adapters.

The gateway ships a weighted sliding-window limiter over the key-value
store abstraction; counters can move to a shared store without changing
the API layer.
"""

from edge_gateway.adapters.rate_limit.base import (
    AbstractRateLimiter,
    DecisionOutcome,
    RateLimitDecision,
    RateLimiterConfig,
    RateWindowState,
)
from edge_gateway.adapters.rate_limit.overrides import RateLimitConfigResolver
from edge_gateway.adapters.rate_limit.sliding_window import WeightedSlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "DecisionOutcome",
    "RateLimitConfigResolver",
    "RateLimitDecision",
    "RateLimiterConfig",
    "RateWindowState",
    "WeightedSlidingWindowRateLimiter",
]
