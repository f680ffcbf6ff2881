"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports the settings module.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("INFLUXDB_TOKEN", "test-influx-token")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Sequence  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402

from edge_gateway.adapters.storage.base import AbstractKeyValueStore  # noqa: E402
from edge_gateway.adapters.timeseries.base import AbstractTimeSeriesWriter  # noqa: E402
from edge_gateway.core.errors import StorageUnavailableError, TimeSeriesWriteError  # noqa: E402
from edge_gateway.schemas.health import DependencyStatus  # noqa: E402


class RecordingWriter(AbstractTimeSeriesWriter):
    """Time-series writer that keeps every batch in memory."""

    def __init__(self) -> None:
        self.batches: list[list[str]] = []
        self.fail_with: TimeSeriesWriteError | None = None
        self.health = DependencyStatus(status="healthy", latency=1.0)
        self.closed = False

    async def write(self, lines: Sequence[str]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.batches.append(list(lines))

    async def check_health(self) -> DependencyStatus:
        return self.health

    async def aclose(self) -> None:
        self.closed = True


class UnavailableStore(AbstractKeyValueStore):
    """Key-value store whose backend is always down."""

    namespace = "unavailable"

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self) -> StorageUnavailableError:
        self.calls += 1
        return StorageUnavailableError(
            code="kv_unavailable",
            message="Key-value store is unreachable",
        )

    async def get(self, key: str) -> str | None:
        raise self._fail()

    async def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        raise self._fail()

    async def delete(self, key: str) -> bool:
        raise self._fail()


@pytest.fixture
def clock() -> Mock:
    """Controllable UNIX clock starting on a window boundary."""
    return Mock(return_value=1_700_000_040.0)


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def unavailable_store() -> UnavailableStore:
    return UnavailableStore()


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    """Headers carrying a key from APP_API_KEYS."""
    return {"X-API-Key": "test-api-key-123"}


@pytest.fixture
def services(clock: Mock, recording_writer: RecordingWriter):
    """In-memory service graph on the test clock with a recording writer."""
    from edge_gateway.core.dependencies import build_services

    built = build_services(clock=clock)
    built.writer = recording_writer
    return built
