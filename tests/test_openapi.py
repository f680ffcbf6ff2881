"""Tests for OpenAPI customization."""

from fastapi.testclient import TestClient

from edge_gateway.core.app_factory import create_app


def test_schema_documents_api_key_and_public_paths(services) -> None:
    schema = TestClient(create_app(services)).get("/openapi.json").json()

    assert schema["components"]["securitySchemes"]["ApiKeyAuth"]["name"] == "X-API-Key"
    assert schema["security"] == [{"ApiKeyAuth": []}]
    assert schema["paths"]["/health"]["get"]["security"] == []
    assert schema["paths"]["/time"]["get"]["security"] == []
    assert "security" not in schema["paths"]["/measurement"]["post"]
    assert {"Measurements", "Cache"} <= {t["name"] for t in schema["tags"]}


def test_lifespan_closes_writer(services, recording_writer) -> None:
    with TestClient(create_app(services)) as client:
        assert client.get("/time").status_code == 200
        assert recording_writer.closed is False

    assert recording_writer.closed is True
