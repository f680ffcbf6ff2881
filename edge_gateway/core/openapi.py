"""OpenAPI customization for the gateway.

Adds the ``X-API-Key`` security scheme, tag descriptions and clears the
security requirement on the public health, time and version endpoints.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

PUBLIC_PATHS = frozenset({"/health", "/time", "/version"})

TAGS_METADATA = [
    {"name": "Measurements", "description": "Ingest sensor readings into the time-series database."},
    {"name": "Health", "description": "Gateway and dependency health."},
    {"name": "Metrics", "description": "Per-endpoint request counters."},
    {"name": "Info", "description": "Server time and build version."},
    {"name": "Cache", "description": "Purge and warm the response cache."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Wrap ``app.openapi`` so the generated schema documents API key auth."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path in PUBLIC_PATHS:
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
