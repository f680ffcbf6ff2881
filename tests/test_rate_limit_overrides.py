"""Unit tests for per-identity limiter configuration."""

import json

import pytest

from edge_gateway.adapters.rate_limit import RateLimitConfigResolver, RateLimiterConfig
from edge_gateway.adapters.storage import InMemoryKeyValueStore

DEFAULT = RateLimiterConfig(limit=100, window_seconds=60)


@pytest.fixture
def overrides(clock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore("rate_limit_config", clock=clock)


@pytest.mark.asyncio
async def test_without_store_uses_default() -> None:
    assert await RateLimitConfigResolver(DEFAULT).resolve("any") is DEFAULT


@pytest.mark.asyncio
async def test_missing_override_uses_default(overrides) -> None:
    assert await RateLimitConfigResolver(DEFAULT, overrides).resolve("any") is DEFAULT


@pytest.mark.asyncio
async def test_stored_override_wins(overrides) -> None:
    await overrides.put("vip", json.dumps({"limit": 1000, "window_seconds": 30}))

    config = await RateLimitConfigResolver(DEFAULT, overrides).resolve("vip")

    assert config == RateLimiterConfig(limit=1000, window_seconds=30)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps({"limit": 0, "window_seconds": 60}),
        json.dumps({"limit": 10, "window_seconds": 60, "burst": 5}),
    ],
)
async def test_invalid_override_falls_back(overrides, raw: str) -> None:
    await overrides.put("vip", raw)

    assert await RateLimitConfigResolver(DEFAULT, overrides).resolve("vip") is DEFAULT


@pytest.mark.asyncio
async def test_store_outage_falls_back(unavailable_store) -> None:
    assert await RateLimitConfigResolver(DEFAULT, unavailable_store).resolve("vip") is DEFAULT
