from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from edge_gateway.core.auth import verify_api_key
from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.core.rate_limit import enforce_rate_limit
from edge_gateway.schemas.health import MetricsResponse
from edge_gateway.services.health_service import check_dependencies

router = APIRouter(tags=["Metrics"])


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def get_metrics(
    response: Response,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> MetricsResponse:
    """Per-endpoint request counters plus current dependency status."""

    dependencies = await check_dependencies(
        services.api_key_store,
        services.writer,
        kv_degraded_latency_ms=settings.app.kv_degraded_latency_ms,
    )
    response.headers["Cache-Control"] = "no-store, no-cache"
    return MetricsResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.app.version,
        endpoints=services.metrics.snapshot(),
        status=dependencies,
    )
