"""Tests for global exception handlers.

Validates that domain errors map to the right HTTP status and that the
error envelope never leaks internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from edge_gateway.core.errors import (
    AppError,
    AuthenticationAppError,
    InvalidIdentityError,
    StorageUnavailableError,
    TimeSeriesWriteError,
    ValidationAppError,
)
from edge_gateway.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


@pytest.mark.parametrize(
    ("error_cls", "expected"),
    [
        (ValidationAppError, 400),
        (InvalidIdentityError, 400),
        (AuthenticationAppError, 401),
        (TimeSeriesWriteError, 502),
        (StorageUnavailableError, 503),
    ],
)
def test_status_for_error_family(error_cls: type[AppError], expected: int) -> None:
    assert status_for(error_cls(code="x", message="y")) == expected


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="bulk_too_large",
                message="Too many measurements",
                details={"context": {"max": 2, "received": 3}},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "bulk_too_large"
        assert error["message"] == "Too many measurements"
        assert error["details"]["context"] == {"max": 2, "received": 3}
        assert "request_id" in error

    def test_write_error_returns_502(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-write")
        async def test_endpoint():
            raise TimeSeriesWriteError(code="timeseries_write_failed", message="Failed to store measurement")

        response = client.get("/test-write")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "timeseries_write_failed"
        assert "details" not in response.json()["error"]


class TestGeneralExceptionHandler:
    def test_general_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_never_leaks_internals(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("influx connection string http://admin:pw@db")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "admin:pw" not in json.dumps(data)
        assert "RuntimeError" not in json.dumps(data)

    def test_unhandled_route_error_returns_500(self, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
