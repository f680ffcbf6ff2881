"""HTTP middleware: request correlation, security headers, request metrics.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from edge_gateway.core.config import settings
from edge_gateway.core.logging import clear_request_id, set_request_id

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate or generate a request id and time the request.

    The incoming ``X-Request-ID`` (header name configurable via
    LOG_REQUEST_ID_HEADER) is reused when present, otherwise a UUID4 is
    generated. The id is bound to the logging context for the duration of
    the request and echoed back together with ``X-Request-Duration-ms``.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add the standard hardening headers to every response."""

    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def request_metrics_middleware(request: Request, call_next) -> Response:
    """Count the request against its endpoint in the app's RequestMetrics.

    An unhandled exception is counted as a 500 before it propagates to the
    server error handler.
    """

    services = getattr(request.app.state, "services", None)
    try:
        response: Response = await call_next(request)
    except Exception:
        if services is not None:
            services.metrics.record(request.url.path, 500)
        raise

    if services is not None:
        # Unknown paths share one bucket so scanners cannot grow the table
        endpoint = "unmatched" if response.status_code == 404 else request.url.path
        services.metrics.record(endpoint, response.status_code)
    return response
