"""Unit tests for the in-memory key-value store."""

from unittest.mock import Mock

import pytest

from edge_gateway.adapters.storage import InMemoryKeyValueStore


@pytest.fixture
def store(clock: Mock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore("test", clock=clock)


@pytest.mark.asyncio
async def test_get_missing_returns_none(store) -> None:
    assert await store.get("missing") is None


@pytest.mark.asyncio
async def test_put_then_get(store) -> None:
    await store.put("k", "v")
    assert await store.get("k") == "v"

    await store.put("k", "v2")
    assert await store.get("k") == "v2"


@pytest.mark.asyncio
async def test_entry_expires_at_ttl(store, clock) -> None:
    start = clock.return_value
    await store.put("k", "v", ttl_seconds=10)

    clock.return_value = start + 9.9
    assert await store.get("k") == "v"

    clock.return_value = start + 10
    assert await store.get("k") is None
    assert store.stats()["evictions"] == 1


@pytest.mark.asyncio
async def test_entry_without_ttl_never_expires(store, clock) -> None:
    await store.put("k", "v")
    clock.return_value += 10**9
    assert await store.get("k") == "v"


@pytest.mark.asyncio
async def test_delete_reports_live_records_only(store, clock) -> None:
    await store.put("live", "v")
    await store.put("stale", "v", ttl_seconds=1)
    clock.return_value += 5

    assert await store.delete("live") is True
    assert await store.delete("live") is False
    assert await store.delete("stale") is False


@pytest.mark.asyncio
async def test_put_evicts_expired_entries(store, clock) -> None:
    await store.put("old", "v", ttl_seconds=1)
    clock.return_value += 2
    await store.put("new", "v")

    assert store.stats() == {"namespace": "test", "entries": 1, "evictions": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -5])
async def test_non_positive_ttl_rejected(store, ttl: int) -> None:
    with pytest.raises(ValueError):
        await store.put("k", "v", ttl_seconds=ttl)
