"""InfluxDB v2 writer over HTTP.

Uses the ``/api/v2/write`` endpoint with nanosecond precision and the
``/health`` endpoint for readiness probes.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from edge_gateway.adapters.timeseries.base import AbstractTimeSeriesWriter
from edge_gateway.core.errors import TimeSeriesWriteError
from edge_gateway.schemas.health import DependencyStatus

logger = logging.getLogger(__name__)

# Upstream error bodies are truncated before they reach logs or clients
_MAX_ERROR_BODY = 512


class InfluxDBWriter(AbstractTimeSeriesWriter):
    """Line-protocol writer for a single InfluxDB bucket."""

    def __init__(
        self,
        *,
        url: str,
        org: str,
        bucket: str,
        token: str | None,
        timeout_seconds: float = 5.0,
        degraded_latency_ms: float = 1000.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            url: Base URL of the InfluxDB instance.
            org: Organization name.
            bucket: Destination bucket.
            token: API token; writes fail and health reports unhealthy without it.
            timeout_seconds: Per-call HTTP timeout.
            degraded_latency_ms: Health probe latency reported as degraded.
            client: Optional pre-built client (tests inject a MockTransport).
        """
        self._org = org
        self._bucket = bucket
        self._token = token
        self._degraded_latency_ms = degraded_latency_ms
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
        )

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Token {self._token}"}

    async def write(self, lines: Sequence[str]) -> None:
        if not lines:
            return
        if not self._token:
            raise TimeSeriesWriteError(
                code="timeseries_not_configured",
                message="InfluxDB token is not configured",
                details={"hint": "Set INFLUXDB_TOKEN", "backend": "influxdb"},
            )

        try:
            response = await self._client.post(
                "/api/v2/write",
                params={"org": self._org, "bucket": self._bucket, "precision": "ns"},
                headers={**self._headers(), "Content-Type": "text/plain; charset=utf-8"},
                content="\n".join(lines).encode("utf-8"),
            )
        except httpx.HTTPError as exc:
            logger.error(
                "influxdb.write_transport_error",
                extra={"error_type": type(exc).__name__, "line_count": len(lines)},
            )
            raise TimeSeriesWriteError(
                code="timeseries_write_failed",
                message="Failed to store measurement",
                details={"backend": "influxdb"},
            ) from exc

        if response.is_error:
            body = response.text[:_MAX_ERROR_BODY]
            logger.error(
                "influxdb.write_rejected",
                extra={
                    "status_code": response.status_code,
                    "upstream_body": body,
                    "line_count": len(lines),
                },
            )
            raise TimeSeriesWriteError(
                code="timeseries_write_failed",
                message="Failed to store measurement",
                details={"http_status": response.status_code, "backend": "influxdb"},
            )

        logger.debug("influxdb.write_ok", extra={"line_count": len(lines)})

    async def check_health(self) -> DependencyStatus:
        if not self._token:
            return DependencyStatus(
                status="unhealthy",
                latency=0,
                message="INFLUXDB_TOKEN not configured",
            )

        start = time.perf_counter()
        try:
            response = await self._client.get("/health", headers=self._headers())
        except httpx.HTTPError as exc:
            latency = (time.perf_counter() - start) * 1000
            logger.error(
                "influxdb.health_failed",
                extra={"error_type": type(exc).__name__},
            )
            return DependencyStatus(status="unhealthy", latency=latency, message=str(exc) or type(exc).__name__)

        latency = (time.perf_counter() - start) * 1000
        if response.is_error:
            return DependencyStatus(
                status="degraded",
                latency=latency,
                message=f"HTTP {response.status_code}: {response.text[:_MAX_ERROR_BODY]}",
            )

        try:
            state = response.json().get("status")
        except ValueError:
            state = None
        if state != "pass":
            return DependencyStatus(
                status="degraded",
                latency=latency,
                message=f"InfluxDB status: {state}",
            )
        if latency > self._degraded_latency_ms:
            return DependencyStatus(status="degraded", latency=latency, message="High latency")
        return DependencyStatus(status="healthy", latency=latency)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
