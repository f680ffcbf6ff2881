"""Unit tests for the weighted sliding-window rate limiter."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest

from edge_gateway.adapters.rate_limit import (
    DecisionOutcome,
    RateLimitConfigResolver,
    RateLimiterConfig,
    WeightedSlidingWindowRateLimiter,
)
from edge_gateway.adapters.rate_limit.windows import counter_key, window_index
from edge_gateway.adapters.storage import InMemoryKeyValueStore
from edge_gateway.core.errors import (
    InvalidIdentityError,
    StorageUnavailableError,
    ValidationAppError,
)

T0 = 1_700_000_040.0  # start of a 60s window
WINDOW = 60


@pytest.fixture
def store(clock: Mock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore("rate_limits", clock=clock)


@pytest.fixture
def limiter(store: InMemoryKeyValueStore, clock: Mock) -> WeightedSlidingWindowRateLimiter:
    return WeightedSlidingWindowRateLimiter(
        store=store,
        config=RateLimiterConfig(limit=100, window_seconds=WINDOW),
        clock=clock,
    )


async def _exhaust(limiter: WeightedSlidingWindowRateLimiter, identity: str, count: int) -> list:
    return [await limiter.evaluate(identity) for _ in range(count)]


@pytest.mark.asyncio
async def test_allows_up_to_limit_with_decreasing_remaining(limiter) -> None:
    decisions = await _exhaust(limiter, "device-key", 100)

    assert all(d.outcome is DecisionOutcome.ALLOWED for d in decisions)
    assert [d.remaining for d in decisions] == list(range(99, -1, -1))
    assert decisions[-1].limit == 100
    assert decisions[-1].reset_at == int(T0) + WINDOW


@pytest.mark.asyncio
async def test_request_over_limit_is_denied(limiter, clock) -> None:
    await _exhaust(limiter, "device-key", 100)

    clock.return_value = T0 + 15.5
    denied = await limiter.evaluate("device-key")

    assert denied.outcome is DecisionOutcome.DENIED
    assert denied.allowed is False
    assert denied.remaining == 0
    assert denied.reset_at == int(T0) + WINDOW
    # ceil(60 - 15.5)
    assert denied.retry_after_seconds == 45


@pytest.mark.asyncio
async def test_denied_requests_are_not_counted(limiter, store) -> None:
    await _exhaust(limiter, "device-key", 100)

    for _ in range(5):
        assert (await limiter.evaluate("device-key")).allowed is False

    key = counter_key("device-key", window_index(T0, WINDOW))
    assert await store.get(key) == "100"


@pytest.mark.asyncio
async def test_previous_window_has_no_weight_on_boundary(limiter, clock) -> None:
    await _exhaust(limiter, "device-key", 100)

    clock.return_value = T0 + WINDOW
    decision = await limiter.evaluate("device-key")

    assert decision.allowed is True
    assert decision.remaining == 99


@pytest.mark.asyncio
async def test_previous_window_weighs_half_mid_window(limiter, clock) -> None:
    await _exhaust(limiter, "device-key", 100)

    clock.return_value = T0 + WINDOW + 30
    decision = await limiter.evaluate("device-key")

    # estimated = 0 + floor(100 * 0.5) = 50
    assert decision.allowed is True
    assert decision.remaining == 49


@pytest.mark.asyncio
async def test_weighted_previous_count_can_deny(limiter, clock) -> None:
    await _exhaust(limiter, "device-key", 100)

    clock.return_value = T0 + WINDOW + 30
    admitted = await _exhaust(limiter, "device-key", 60)

    assert sum(d.allowed for d in admitted) == 50
    assert admitted[50].outcome is DecisionOutcome.DENIED


@pytest.mark.asyncio
async def test_counters_older_than_previous_window_are_ignored(limiter, clock) -> None:
    await _exhaust(limiter, "device-key", 100)

    clock.return_value = T0 + 2 * WINDOW + 30
    decision = await limiter.evaluate("device-key")

    assert decision.remaining == 99


@pytest.mark.asyncio
async def test_identities_are_isolated(limiter) -> None:
    await _exhaust(limiter, "key-a", 100)

    assert (await limiter.evaluate("key-a")).allowed is False
    assert (await limiter.evaluate("key-b")).remaining == 99


@pytest.mark.asyncio
async def test_counter_written_under_identity_and_window_with_two_window_ttl(
    limiter, store, clock
) -> None:
    await limiter.evaluate("device-key")
    key = f"device-key:{window_index(T0, WINDOW)}"

    clock.return_value = T0 + 2 * WINDOW - 1
    assert await store.get(key) == "1"

    clock.return_value = T0 + 2 * WINDOW
    assert await store.get(key) is None


@pytest.mark.asyncio
async def test_explicit_now_overrides_clock(limiter, clock) -> None:
    clock.return_value = 0.0
    decision = await limiter.evaluate("device-key", now=T0 + 10)

    assert decision.reset_at == int(T0) + WINDOW


@pytest.mark.asyncio
async def test_concurrent_evaluations_never_exceed_limit(limiter) -> None:
    decisions = await asyncio.gather(*(limiter.evaluate("device-key") for _ in range(150)))

    assert sum(d.allowed for d in decisions) == 100
    assert sum(d.outcome is DecisionOutcome.DENIED for d in decisions) == 50


@pytest.mark.asyncio
async def test_storage_failure_fails_open(unavailable_store, clock) -> None:
    limiter = WeightedSlidingWindowRateLimiter(
        store=unavailable_store,
        config=RateLimiterConfig(limit=10, window_seconds=WINDOW),
        clock=clock,
    )

    decision = await limiter.evaluate("device-key")

    assert decision.outcome is DecisionOutcome.DEGRADED
    assert decision.allowed is True
    assert decision.degraded is True
    assert decision.remaining == -1
    assert decision.limit == 10
    assert decision.reset_at == int(T0) + WINDOW


@pytest.mark.asyncio
async def test_failed_counter_write_fails_open(limiter, store) -> None:
    store.put = AsyncMock(
        side_effect=StorageUnavailableError(code="kv_unavailable", message="write failed")
    )

    decision = await limiter.evaluate("device-key")

    store.put.assert_awaited_once()
    assert decision.outcome is DecisionOutcome.DEGRADED
    assert decision.allowed is True
    assert decision.remaining == -1
    assert decision.limit == 100


@pytest.mark.asyncio
@pytest.mark.parametrize("identity", ["", "   "])
async def test_empty_identity_is_rejected(limiter, identity: str) -> None:
    with pytest.raises(InvalidIdentityError) as exc_info:
        await limiter.evaluate(identity)

    assert exc_info.value.code == "invalid_identity"
    assert isinstance(exc_info.value, ValidationAppError)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not-a-number", "", "12.5"])
async def test_garbled_counter_counts_as_zero(limiter, store, raw: str) -> None:
    key = counter_key("device-key", window_index(T0, WINDOW))
    await store.put(key, raw, ttl_seconds=2 * WINDOW)

    decision = await limiter.evaluate("device-key")

    assert decision.remaining == 99
    assert await store.get(key) == "1"


@pytest.mark.asyncio
async def test_negative_counter_is_clamped(limiter, store) -> None:
    key = counter_key("device-key", window_index(T0, WINDOW))
    await store.put(key, "-40", ttl_seconds=2 * WINDOW)

    decision = await limiter.evaluate("device-key")

    assert decision.remaining == 99


@pytest.mark.asyncio
async def test_per_identity_override_is_applied(store, clock) -> None:
    overrides = InMemoryKeyValueStore("rate_limit_config", clock=clock)
    await overrides.put("premium-key", json.dumps({"limit": 3, "window_seconds": 10}))
    limiter = WeightedSlidingWindowRateLimiter(
        store=store,
        resolver=RateLimitConfigResolver(RateLimiterConfig(), store=overrides),
        clock=clock,
    )

    decisions = await _exhaust(limiter, "premium-key", 4)
    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert decisions[0].limit == 3
    assert decisions[0].reset_at == int(T0) + 10

    other = await limiter.evaluate("standard-key")
    assert other.limit == 100


def test_default_config_values() -> None:
    config = RateLimiterConfig()

    assert config.limit == 100
    assert config.window_seconds == 60


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_config_is_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimiterConfig(**kwargs)
