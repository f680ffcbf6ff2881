"""Pydantic schemas for health and metrics responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

HealthState = Literal["healthy", "degraded", "unhealthy"]


class DependencyStatus(BaseModel):
    """Outcome of probing one downstream dependency."""

    status: HealthState
    latency: float = Field(..., description="Probe duration in milliseconds.")
    message: str | None = None


class HealthDependencies(BaseModel):
    influxdb: DependencyStatus
    kv_store: DependencyStatus


class HealthResponse(BaseModel):
    status: HealthState
    timestamp: str
    version: str
    dependencies: HealthDependencies


class EndpointCounters(BaseModel):
    total: int = 0
    success: int = 0
    error: int = 0


class MetricsResponse(BaseModel):
    timestamp: str
    version: str
    endpoints: dict[str, EndpointCounters]
    status: HealthDependencies
