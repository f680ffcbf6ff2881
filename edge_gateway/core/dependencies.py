"""Service container wired into the FastAPI app.

Every stateful collaborator (stores, limiter, time-series writer, response
cache, request metrics) is built once per application instance and hung
off ``app.state.services``. Routes reach it through ``get_services`` so
tests can build an app around fakes without patching module globals.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request

from edge_gateway.adapters.rate_limit import (
    AbstractRateLimiter,
    RateLimitConfigResolver,
    RateLimiterConfig,
    WeightedSlidingWindowRateLimiter,
)
from edge_gateway.adapters.storage import AbstractKeyValueStore, InMemoryKeyValueStore
from edge_gateway.adapters.timeseries import AbstractTimeSeriesWriter, InfluxDBWriter
from edge_gateway.core.config import Settings, settings as default_settings
from edge_gateway.services.metrics_service import RequestMetrics
from edge_gateway.services.response_cache import ResponseCache


@dataclass
class GatewayServices:
    """Collaborators shared by the request handlers of one app."""

    api_key_store: AbstractKeyValueStore
    rate_limiter: AbstractRateLimiter
    rate_limit_config_store: AbstractKeyValueStore
    writer: AbstractTimeSeriesWriter
    response_cache: ResponseCache
    metrics: RequestMetrics = field(default_factory=RequestMetrics)
    clock: Callable[[], float] = time.time


def build_services(
    cfg: Settings | None = None,
    *,
    clock: Callable[[], float] = time.time,
) -> GatewayServices:
    """Build the default, in-process service graph from settings.

    Args:
        cfg: Settings to use; defaults to the global settings.
        clock: Time source shared by stores and the rate limiter.

    Returns:
        GatewayServices backed by in-memory stores and an InfluxDB writer.
    """
    cfg = cfg or default_settings

    counters = InMemoryKeyValueStore("rate_limits", clock=clock)
    overrides = InMemoryKeyValueStore("rate_limit_config", clock=clock)
    resolver = RateLimitConfigResolver(
        RateLimiterConfig(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
        ),
        store=overrides,
    )

    return GatewayServices(
        api_key_store=InMemoryKeyValueStore("api_keys", clock=clock),
        rate_limiter=WeightedSlidingWindowRateLimiter(
            store=counters,
            resolver=resolver,
            clock=clock,
        ),
        rate_limit_config_store=overrides,
        writer=InfluxDBWriter(
            url=cfg.influx.url,
            org=cfg.influx.org,
            bucket=cfg.influx.bucket,
            token=cfg.influx.token,
            timeout_seconds=cfg.influx.timeout_seconds,
            degraded_latency_ms=cfg.app.influx_degraded_latency_ms,
        ),
        response_cache=ResponseCache(InMemoryKeyValueStore("response_cache", clock=clock)),
        clock=clock,
    )


def get_services(request: Request) -> GatewayServices:
    """FastAPI dependency returning the app's service container."""

    return request.app.state.services
