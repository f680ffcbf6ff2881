"""Pydantic schemas for /time, /version and cache control."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TimezoneInfo(BaseModel):
    offset: int = Field(..., description="Offset from UTC in minutes.")
    name: str


class DateParts(BaseModel):
    year: int
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday.")


class TimeParts(BaseModel):
    hours: int = Field(..., ge=0, le=23)
    minutes: int = Field(..., ge=0, le=59)
    seconds: int = Field(..., ge=0, le=59)
    milliseconds: int = Field(..., ge=0, le=999)


class TimeResponse(BaseModel):
    """Server clock, for devices without a reliable RTC."""

    iso: str
    timestamp: int = Field(..., description="Milliseconds since the UNIX epoch.")
    timezone: TimezoneInfo
    date: DateParts
    time: TimeParts


class ApiInfo(BaseModel):
    endpoints: list[str]
    base_url: str


class VersionResponse(BaseModel):
    version: str
    major: int = Field(..., ge=0)
    minor: int = Field(..., ge=0)
    patch: int = Field(..., ge=0)
    timestamp: str
    api: ApiInfo


class CachePurgeRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Cached path to invalidate, e.g. /version.")


class CachePurgeResponse(BaseModel):
    success: bool
    message: str
    request_id: str | None = None


class WarmedEndpoint(BaseModel):
    endpoint: str
    success: bool
    cached: bool = False
    error: str | None = None


class CacheWarmResponse(BaseModel):
    success: bool
    warmed_endpoints: list[WarmedEndpoint]
    request_id: str | None = None
