from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.schemas.health import HealthResponse
from edge_gateway.services.health_service import build_health_report

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    services: Annotated[GatewayServices, Depends(get_services)],
) -> JSONResponse:
    """Health check endpoint.

    Probes the key-value store and InfluxDB. Responds 200 while the
    gateway is healthy or degraded and 503 when a dependency is down, so
    load balancers can take the instance out of rotation.
    """

    report = await build_health_report(
        services.api_key_store,
        services.writer,
        version=settings.app.version,
        kv_degraded_latency_ms=settings.app.kv_degraded_latency_ms,
    )
    status_code = 503 if report.status == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content=report.model_dump(mode="json"),
        headers={"Cache-Control": "no-store"},
    )
