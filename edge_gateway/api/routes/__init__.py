from __future__ import annotations

from edge_gateway.api.routes.cache import router as cache_router
from edge_gateway.api.routes.health import router as health_router
from edge_gateway.api.routes.info import router as info_router
from edge_gateway.api.routes.measurements import router as measurements_router
from edge_gateway.api.routes.metrics import router as metrics_router

__all__ = [
    "cache_router",
    "health_router",
    "info_router",
    "measurements_router",
    "metrics_router",
]
