"""Cache control endpoints: purge and warm the response cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from edge_gateway.core.auth import verify_api_key
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.core.errors import ValidationAppError
from edge_gateway.core.logging import get_request_id
from edge_gateway.core.rate_limit import enforce_rate_limit
from edge_gateway.schemas.info import (
    CachePurgeRequest,
    CachePurgeResponse,
    CacheWarmResponse,
    WarmedEndpoint,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cache",
    tags=["Cache"],
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)


@router.post("/purge", response_model=CachePurgeResponse)
async def purge_cache(
    payload: CachePurgeRequest,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> CachePurgeResponse:
    """Invalidate every cached variant of one purgeable path.

    Raises:
        ValidationAppError: If the path is not a cached endpoint.
    """
    cache = services.response_cache
    if payload.path not in cache.paths:
        raise ValidationAppError(
            code="path_not_purgeable",
            message=(
                f"Path {payload.path} is not allowed to be purged. "
                f"Allowed paths: {', '.join(cache.paths)}"
            ),
            details={"path": payload.path, "allowed_paths": cache.paths},
        )

    purged = await cache.purge(payload.path)
    return CachePurgeResponse(
        success=True,
        message=(
            f"Cache purged for path: {payload.path}"
            if purged
            else f"No cache entries found for path: {payload.path}"
        ),
        request_id=get_request_id(),
    )


@router.post("/warm", response_model=CacheWarmResponse)
async def warm_cache(
    response: Response,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> CacheWarmResponse:
    """Pre-render every cached endpoint. Responds 207 if any of them failed."""
    cache = services.response_cache
    results = await asyncio.gather(*(cache.warm(path) for path in cache.paths))

    all_success = all(r.success for r in results)
    if not all_success:
        response.status_code = 207

    logger.info(
        "cache.warm_completed",
        extra={
            "endpoints": [r.to_dict() for r in results],
            "all_success": all_success,
        },
    )
    return CacheWarmResponse(
        success=all_success,
        warmed_endpoints=[WarmedEndpoint(**r.to_dict()) for r in results],
        request_id=get_request_id(),
    )
