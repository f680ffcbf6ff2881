"""Auxiliary endpoints: server time and build version."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.schemas.info import (
    ApiInfo,
    DateParts,
    TimeParts,
    TimeResponse,
    TimezoneInfo,
    VersionResponse,
)

router = APIRouter(tags=["Info"])

PUBLIC_ENDPOINTS = [
    "/health",
    "/time",
    "/version",
    "/metrics",
    "/measurement",
    "/measurements/bulk",
    "/cache/purge",
    "/cache/warm",
]


def build_time_payload(now: datetime) -> TimeResponse:
    """Break a timestamp into the parts reported by /time."""

    offset = now.utcoffset()
    return TimeResponse(
        iso=now.isoformat(timespec="milliseconds"),
        timestamp=int(now.timestamp() * 1000),
        timezone=TimezoneInfo(
            offset=int(offset.total_seconds() // 60) if offset else 0,
            name=now.tzname() or "UTC",
        ),
        date=DateParts(
            year=now.year,
            month=now.month,
            day=now.day,
            # isoweekday: Monday=1 .. Sunday=7; reported as Sunday=0
            weekday=now.isoweekday() % 7,
        ),
        time=TimeParts(
            hours=now.hour,
            minutes=now.minute,
            seconds=now.second,
            milliseconds=now.microsecond // 1000,
        ),
    )


def parse_version(version: str) -> tuple[int, int, int]:
    """Split ``MAJOR.MINOR.PATCH``; missing or non-numeric parts read as 0.

    Examples:
        >>> parse_version("1.4.2")
        (1, 4, 2)
        >>> parse_version("2.0")
        (2, 0, 0)
    """
    parts = (version.split("-", 1)[0].split(".") + ["0", "0", "0"])[:3]
    numbers = [int(p) if p.isdigit() else 0 for p in parts]
    return numbers[0], numbers[1], numbers[2]


def build_version_payload() -> VersionResponse:
    major, minor, patch = parse_version(settings.app.version)
    return VersionResponse(
        version=settings.app.version,
        major=major,
        minor=minor,
        patch=patch,
        timestamp=datetime.now(timezone.utc).isoformat(),
        api=ApiInfo(endpoints=PUBLIC_ENDPOINTS, base_url=settings.app.base_url),
    )


async def render_version() -> Response:
    """Uncached /version response; also used to warm the cache."""

    return JSONResponse(content=build_version_payload().model_dump(mode="json"))


@router.get("/time", response_model=TimeResponse)
async def get_time(
    services: Annotated[GatewayServices, Depends(get_services)],
) -> TimeResponse:
    """Current server time in UTC."""

    now = datetime.fromtimestamp(services.clock(), tz=timezone.utc)
    return build_time_payload(now)


@router.get("/version", response_model=VersionResponse)
async def get_version(
    request: Request,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> Response:
    """Gateway version, served from the response cache for an hour."""

    cache = services.response_cache
    cached = await cache.lookup(request)
    if cached is not None:
        return cached

    response = await render_version()
    return await cache.store(request, response, ttl_seconds=settings.app.version_cache_seconds)
