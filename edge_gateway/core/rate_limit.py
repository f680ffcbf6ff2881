"""Rate limiting dependency for FastAPI routes.

Wires the rate limiter adapter into the HTTP layer:
- identity is the authenticated API key (client IP when auth is disabled)
- denied requests get HTTP 429 with X-RateLimit-* and Retry-After headers
- admitted requests carry X-RateLimit-* headers on the success response
- a limiter that does not answer within the configured timeout is treated
  like a storage outage: the request is admitted without quota headers
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status

from edge_gateway.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from edge_gateway.adapters.rate_limit.windows import window_index, window_reset_at
from edge_gateway.core.auth import verify_api_key
from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.core.logging import fingerprint, get_request_id

logger = logging.getLogger(__name__)


def build_rate_limit_identity(request: Request, api_key: str | None) -> str:
    """Return the limiter identity for the current request."""

    if api_key:
        return api_key

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Quota headers describing a decision.

    A degraded decision only advertises the limit, since the remaining
    budget is unknown. Nothing is advertised when the limit itself is unknown.
    """
    if decision.limit is None:
        return {}

    headers = {"X-RateLimit-Limit": str(decision.limit)}
    if decision.degraded:
        return headers

    headers["X-RateLimit-Remaining"] = str(max(0, decision.remaining))
    headers["X-RateLimit-Reset"] = str(decision.reset_at)
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after_seconds or 0)
    return headers


async def evaluate_with_timeout(
    limiter: AbstractRateLimiter,
    identity: str,
    *,
    timeout_seconds: float,
    now: float,
) -> RateLimitDecision:
    """Run one evaluation, failing open if it does not finish in time."""

    try:
        return await asyncio.wait_for(limiter.evaluate(identity, now), timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(
            "rate_limit.timeout",
            extra={
                "identity_hash": fingerprint(identity),
                "timeout_s": timeout_seconds,
                "fail_open": True,
            },
        )
        # The identity's limit may be overridden; it is unknown without the limiter
        window = settings.app.rate_limit_window_seconds
        return RateLimitDecision.degraded_for(
            limit=None,
            reset_at=window_reset_at(window_index(now, window), window),
        )


async def enforce_rate_limit(
    request: Request,
    response: Response,
    services: Annotated[GatewayServices, Depends(get_services)],
    api_key: Annotated[str | None, Depends(verify_api_key)],
) -> RateLimitDecision | None:
    """FastAPI dependency enforcing the per-key quota.

    Consumes one unit of the caller's budget. Must run after authentication,
    which it depends on.

    Returns:
        The decision, or None when rate limiting is disabled.

    Raises:
        HTTPException: 429 Too Many Requests when the quota is exhausted.
        InvalidIdentityError: If no usable identity could be derived.
    """
    if not settings.app.rate_limit_enabled:
        return None

    identity = build_rate_limit_identity(request, api_key)
    decision = await evaluate_with_timeout(
        services.rate_limiter,
        identity,
        timeout_seconds=settings.app.rate_limit_timeout_seconds,
        now=services.clock(),
    )
    headers = rate_limit_headers(decision)

    if decision.allowed:
        response.headers.update(headers)
        return decision

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "identity_hash": fingerprint(identity),
            "limit": decision.limit,
            "reset_at": decision.reset_at,
            "retry_after_s": decision.retry_after_seconds,
            "path": request.url.path,
        },
    )
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "code": "rate_limit_exceeded",
            "message": (
                f"Rate limit of {decision.limit} requests per window exceeded. "
                f"Retry after {decision.retry_after_seconds} seconds."
            ),
            "limit": decision.limit,
            "reset_at": decision.reset_at,
            "retry_after": decision.retry_after_seconds,
            "request_id": get_request_id(),
        },
        headers=headers,
    )
