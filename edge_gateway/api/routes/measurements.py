from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from edge_gateway.core.auth import verify_api_key
from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.core.logging import get_request_id
from edge_gateway.core.rate_limit import enforce_rate_limit
from edge_gateway.schemas.measurement import (
    BulkMeasurementRequest,
    BulkMeasurementResponse,
    MeasurementRequest,
    MeasurementResponse,
)
from edge_gateway.services.measurement_service import MeasurementService

router = APIRouter(tags=["Measurements"])


def get_measurement_service(
    services: Annotated[GatewayServices, Depends(get_services)],
) -> MeasurementService:
    return MeasurementService(
        services.writer,
        measurement=settings.influx.measurement,
        max_bulk=settings.app.max_bulk_measurements,
    )


@router.post(
    "/measurement",
    response_model=MeasurementResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def create_measurement(
    payload: MeasurementRequest,
    service: Annotated[MeasurementService, Depends(get_measurement_service)],
) -> MeasurementResponse:
    """Store one sensor reading in the time-series database.

    Raises:
        TimeSeriesWriteError: Rendered as 502 when the write fails.
    """
    return await service.store_one(payload, request_id=get_request_id())


@router.post(
    "/measurements/bulk",
    response_model=BulkMeasurementResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def create_measurements_bulk(
    payload: BulkMeasurementRequest,
    service: Annotated[MeasurementService, Depends(get_measurement_service)],
) -> BulkMeasurementResponse:
    """Store a batch of readings from one device in a single write."""
    return await service.store_bulk(payload, request_id=get_request_id())
