"""Pydantic schemas for sensor measurement ingestion."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Values written as line-protocol tags: no control characters
TAG_VALUE_PATTERN = r"^[^\x00-\x1f\x7f]*$"


class Device(BaseModel):
    """Identity of the reporting sensor."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(
        ..., min_length=1, pattern=TAG_VALUE_PATTERN, description="Unique device identifier."
    )
    type: str = Field(
        ..., min_length=1, pattern=TAG_VALUE_PATTERN, description="Device model or category."
    )


class Readings(BaseModel):
    """Values sampled by the device."""

    model_config = ConfigDict(extra="forbid")

    temperature: float = Field(..., description="Temperature in degrees Celsius.")
    humidity: float | None = Field(None, description="Relative humidity in percent.")
    battery_voltage: float | None = Field(
        None,
        ge=0,
        le=5,
        description="Battery voltage in volts (0-5V).",
    )


class MeasurementMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: str | None = Field(
        None, pattern=TAG_VALUE_PATTERN, description="Free-form installation location."
    )
    timestamp: datetime | None = Field(
        None,
        description="ISO-8601 sampling time; the gateway's receive time is used when omitted.",
    )


class MeasurementRequest(BaseModel):
    """Body of ``POST /measurement``."""

    model_config = ConfigDict(extra="forbid")

    device: Device
    readings: Readings
    metadata: MeasurementMetadata | None = None


class TimedReadings(Readings):
    """A reading within a bulk upload; each carries its own sampling time."""

    timestamp: datetime = Field(..., description="ISO-8601 sampling time.")


class BulkMeasurementRequest(BaseModel):
    """Body of ``POST /measurements/bulk``.

    The upper bound on ``measurements`` is enforced by the service from
    settings so it can be tuned per deployment.
    """

    model_config = ConfigDict(extra="forbid")

    device: Device
    location: str | None = Field(None, pattern=TAG_VALUE_PATTERN)
    measurements: list[TimedReadings] = Field(..., min_length=1)


class MeasurementResponse(BaseModel):
    success: bool = True
    request_id: str | None = None
    timestamp: datetime = Field(..., description="Sampling time written to the sink.")
    duration_ms: float


class BulkMeasurementResponse(BaseModel):
    success: bool = True
    request_id: str | None = None
    measurement_count: int
    duration_ms: float
