"""Application-level exception types.

Domain errors raised by adapters and services. The HTTP layer maps each
family to a status code in ``edge_gateway.core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    http_status: int
    path: str
    allowed_paths: list[str]
    backend: str
    context: dict[str, Any]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidIdentityError(ValidationAppError):
    """Raised when a rate limit evaluation is requested for an empty identity."""


class AuthenticationAppError(AppError):
    """Raised when authentication fails."""


class StorageUnavailableError(AppError):
    """Raised by key-value store adapters when the backend cannot be reached."""


class TimeSeriesWriteError(AppError):
    """Raised when the time-series sink rejects or fails a write."""
