"""Dependency health probes for /health and /metrics."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.adapters.timeseries.base import AbstractTimeSeriesWriter
from edge_gateway.core.errors import StorageUnavailableError
from edge_gateway.schemas.health import (
    DependencyStatus,
    HealthDependencies,
    HealthResponse,
    HealthState,
)

logger = logging.getLogger(__name__)

_PROBE_KEY = "health_check"
_PROBE_VALUE = "ok"


async def check_kv_store(
    store: AbstractKeyValueStore, *, degraded_latency_ms: float = 500.0
) -> DependencyStatus:
    """Round-trip a short-lived record through the store."""

    start = time.perf_counter()
    try:
        await store.put(_PROBE_KEY, _PROBE_VALUE, ttl_seconds=60)
        value = await store.get(_PROBE_KEY)
        await store.delete(_PROBE_KEY)
    except StorageUnavailableError as exc:
        latency = (time.perf_counter() - start) * 1000
        logger.error("health.kv_failed", extra={"error_code": exc.code})
        return DependencyStatus(status="unhealthy", latency=latency, message=exc.message)

    latency = (time.perf_counter() - start) * 1000
    if value != _PROBE_VALUE:
        return DependencyStatus(
            status="unhealthy",
            latency=latency,
            message="KV store read/write test failed",
        )
    if latency > degraded_latency_ms:
        return DependencyStatus(status="degraded", latency=latency, message="High latency")
    return DependencyStatus(status="healthy", latency=latency)


def overall_status(*statuses: DependencyStatus) -> HealthState:
    """Worst state wins: unhealthy > degraded > healthy."""

    states = {s.status for s in statuses}
    if "unhealthy" in states:
        return "unhealthy"
    if "degraded" in states:
        return "degraded"
    return "healthy"


async def check_dependencies(
    store: AbstractKeyValueStore,
    writer: AbstractTimeSeriesWriter,
    *,
    kv_degraded_latency_ms: float = 500.0,
) -> HealthDependencies:
    kv_status, influx_status = await asyncio.gather(
        check_kv_store(store, degraded_latency_ms=kv_degraded_latency_ms),
        writer.check_health(),
    )
    return HealthDependencies(influxdb=influx_status, kv_store=kv_status)


async def build_health_report(
    store: AbstractKeyValueStore,
    writer: AbstractTimeSeriesWriter,
    *,
    version: str,
    kv_degraded_latency_ms: float = 500.0,
) -> HealthResponse:
    dependencies = await check_dependencies(
        store, writer, kv_degraded_latency_ms=kv_degraded_latency_ms
    )
    return HealthResponse(
        status=overall_status(dependencies.influxdb, dependencies.kv_store),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=version,
        dependencies=dependencies,
    )
