"""Application factory for the edge gateway.

Builds the FastAPI app (middleware, handlers, routers, docs) around a
``GatewayServices`` container so tests can inject fakes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from edge_gateway.api.routes import (
    cache_router,
    health_router,
    info_router,
    measurements_router,
    metrics_router,
)
from edge_gateway.api.routes.info import render_version
from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, build_services
from edge_gateway.core.exception_handlers import setup_exception_handlers
from edge_gateway.core.logging import configure_logging
from edge_gateway.core.middleware import (
    request_id_middleware,
    request_metrics_middleware,
    security_headers_middleware,
)
from edge_gateway.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def create_app(services: GatewayServices | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Pre-built service container. Built from settings if omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "gateway.startup",
            extra={
                "version": settings.app.version,
                "rate_limit_enabled": settings.app.rate_limit_enabled,
                "api_key_required": settings.app.api_key_required,
            },
        )
        try:
            yield
        finally:
            await services.writer.aclose()
            logger.info("gateway.shutdown")

    app = FastAPI(
        title="IoT Edge Gateway",
        description=(
            "HTTP gateway for IoT sensor measurements. Authenticates devices "
            "with X-API-Key, enforces a per-identity sliding-window rate limit "
            "and forwards readings to InfluxDB."
        ),
        version=settings.app.version,
        lifespan=lifespan,
    )
    app.state.services = services

    services.response_cache.register(
        "/version",
        ttl_seconds=settings.app.version_cache_seconds,
        render=render_version,
    )

    # Middleware: the last registered runs first, so request ids wrap everything
    app.middleware("http")(request_metrics_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(measurements_router)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(info_router)
    app.include_router(cache_router)

    apply_openapi_customizations(app)

    return app
