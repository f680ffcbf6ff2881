"""API key authentication.

A key is accepted when it appears in the configured ``APP_API_KEYS`` list
or when a record for it exists in the ``api_keys`` store (key-existence
lookup, so keys can be provisioned at runtime without a restart).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from edge_gateway.adapters.storage.base import AbstractKeyValueStore
from edge_gateway.core.config import settings
from edge_gateway.core.dependencies import GatewayServices, get_services
from edge_gateway.core.errors import AuthenticationAppError, StorageUnavailableError
from edge_gateway.core.logging import fingerprint

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 ,key3 "))
        ['key1', 'key2', 'key3']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


async def validate_api_key(provided_key: str, store: AbstractKeyValueStore) -> None:
    """Check a key against configured keys, then against the key store.

    Args:
        provided_key: Value of the X-API-Key header.
        store: The ``api_keys`` namespace.

    Raises:
        AuthenticationAppError: If the key is unknown.
        StorageUnavailableError: If the key store cannot be queried.
    """
    if provided_key in parse_api_keys(settings.app.api_keys):
        return

    if await store.get(provided_key) is not None:
        return

    logger.warning(
        "auth.invalid_key",
        extra={"api_key_hash": fingerprint(provided_key)},
    )
    raise AuthenticationAppError(
        code="invalid_api_key",
        message="Invalid API key",
        details={"hint": "Provide a registered key in the X-API-Key header"},
    )


async def verify_api_key(
    services: Annotated[GatewayServices, Depends(get_services)],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> str | None:
    """FastAPI dependency for API key authentication.

    Usage:
        @router.post("/protected", dependencies=[Depends(verify_api_key)])

    Returns:
        The authenticated key, or the raw header value (possibly None) when
        authentication is disabled.

    Raises:
        HTTPException: 401 when the key is missing or invalid, 500 when the
            key store is unavailable.
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return x_api_key

    if not x_api_key:
        logger.warning("auth.missing_key", extra={"api_key_present": False})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required",
        )

    try:
        await validate_api_key(x_api_key, services.api_key_store)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
        ) from exc
    except StorageUnavailableError as exc:
        logger.error(
            "auth.store_unavailable",
            extra={"api_key_hash": fingerprint(x_api_key), "error_code": exc.code},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to validate API key",
        ) from exc

    logger.debug("auth.success", extra={"api_key_hash": fingerprint(x_api_key)})
    return x_api_key
