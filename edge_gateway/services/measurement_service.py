"""Measurement ingestion: validate, render line protocol, write to the sink."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from edge_gateway.adapters.timeseries.base import AbstractTimeSeriesWriter
from edge_gateway.core.errors import ValidationAppError
from edge_gateway.schemas.measurement import (
    BulkMeasurementRequest,
    BulkMeasurementResponse,
    Device,
    MeasurementRequest,
    MeasurementResponse,
    Readings,
)
from edge_gateway.utils.line_protocol import build_line

logger = logging.getLogger(__name__)


def _reading_line(
    measurement: str,
    device: Device,
    location: str | None,
    readings: Readings,
    timestamp: datetime,
) -> str:
    return build_line(
        measurement,
        tags={
            "device_id": device.id,
            "device_type": device.type,
            "location": location,
        },
        fields={
            "temperature": readings.temperature,
            "humidity": readings.humidity,
            "battery_voltage": readings.battery_voltage,
        },
        timestamp=timestamp,
    )


class MeasurementService:
    """Turns validated sensor payloads into time-series writes."""

    def __init__(
        self,
        writer: AbstractTimeSeriesWriter,
        *,
        measurement: str = "iot_measurements",
        max_bulk: int = 1000,
    ) -> None:
        self._writer = writer
        self._measurement = measurement
        self._max_bulk = max_bulk

    async def store_one(
        self, payload: MeasurementRequest, *, request_id: str | None = None
    ) -> MeasurementResponse:
        """Write a single reading.

        Raises:
            TimeSeriesWriteError: If the sink rejects the write.
        """
        start = time.perf_counter()
        metadata = payload.metadata
        timestamp = (metadata.timestamp if metadata else None) or datetime.now(timezone.utc)
        location = metadata.location if metadata else None

        line = _reading_line(self._measurement, payload.device, location, payload.readings, timestamp)
        await self._writer.write([line])

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "measurement.stored",
            extra={
                "device_id": payload.device.id,
                "device_type": payload.device.type,
                "duration_ms": duration_ms,
            },
        )
        return MeasurementResponse(
            request_id=request_id,
            timestamp=timestamp,
            duration_ms=duration_ms,
        )

    async def store_bulk(
        self, payload: BulkMeasurementRequest, *, request_id: str | None = None
    ) -> BulkMeasurementResponse:
        """Write every reading of a bulk upload in one batch.

        Raises:
            ValidationAppError: If the batch exceeds the configured maximum.
            TimeSeriesWriteError: If the sink rejects the write.
        """
        count = len(payload.measurements)
        if count > self._max_bulk:
            raise ValidationAppError(
                code="bulk_too_large",
                message=f"At most {self._max_bulk} measurements are accepted per request",
                details={"context": {"max": self._max_bulk, "received": count}},
            )

        start = time.perf_counter()
        lines = [
            _reading_line(self._measurement, payload.device, payload.location, reading, reading.timestamp)
            for reading in payload.measurements
        ]
        await self._writer.write(lines)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "measurement.bulk_stored",
            extra={
                "device_id": payload.device.id,
                "measurement_count": count,
                "duration_ms": duration_ms,
            },
        )
        return BulkMeasurementResponse(
            request_id=request_id,
            measurement_count=count,
            duration_ms=duration_ms,
        )
