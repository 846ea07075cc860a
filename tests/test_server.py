"""Tests for the HTTP boundary of the Order Assembly Service."""

import re
from datetime import datetime
from http import HTTPStatus

from fastapi.testclient import TestClient

from order_assembly_service import __version__
from order_assembly_service.server import app, get_pipeline
from order_assembly_service.settings import Settings

from .support import UUID_PATTERN, VALID_KEY


def test_version():
    """Testing package Version."""
    assert __version__ == "1.0.0"


def test_health_check(test_client):
    """Health check needs no API key."""
    response = test_client.get("/health")

    assert response.status_code == HTTPStatus.OK
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "order-assembly-service"
    assert body["version"] == "1.0.0"
    assert datetime.fromisoformat(body["timestamp"])


def test_readiness_check(test_client, queue_transport):
    assert test_client.get("/health/ready").json() == {"status": "ready", "kafka": True}

    queue_transport.ready = False
    assert test_client.get("/health/ready").json() == {"status": "not_ready", "kafka": False}


def test_assemble_order(test_client, valid_order):
    response = test_client.post("/orders/assemble", json=valid_order, headers={"x-api-key": VALID_KEY})

    assert response.status_code == HTTPStatus.OK
    body = response.json()
    assert body["success"] is True
    assert body["order_id"] == "O1"
    assert re.match(UUID_PATTERN, body["assembly_id"])
    assert body["message"] == "Order assembled and published successfully"
    assert body["sqs_message_id"]


def test_api_key_header_name_is_case_insensitive(test_client, valid_order):
    for header in ("X-API-Key", "X-API-KEY", "x-Api-kEy"):
        response = test_client.post("/orders/assemble", json=valid_order, headers={header: VALID_KEY})
        assert response.status_code == HTTPStatus.OK


def test_missing_api_key(test_client, valid_order):
    response = test_client.post("/orders/assemble", json=valid_order)

    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert response.json() == {
        "error": "Unauthorized",
        "details": "API key is required. Provide it in the X-API-Key header.",
    }


def test_api_key_value_is_case_sensitive(test_client, valid_order):
    response = test_client.post("/orders/assemble", json=valid_order, headers={"x-api-key": VALID_KEY.upper()})

    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert response.json()["details"] == "Invalid API key provided."


def test_invalid_json_body(test_client):
    response = test_client.post(
        "/orders/assemble",
        content=b'{"order_id": "O1", ',
        headers={"x-api-key": VALID_KEY, "content-type": "application/json"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["error"] == "Malformed request body"


def test_empty_items(test_client, valid_order):
    valid_order["items"] = []

    response = test_client.post("/orders/assemble", json=valid_order, headers={"x-api-key": VALID_KEY})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json() == {
        "error": "Validation failed",
        "details": ["items is required and must be a non-empty array"],
    }


def test_unresolvable_sku(test_client, valid_order):
    valid_order["items"][0]["sku"] = "INVALID_SKU"

    response = test_client.post("/orders/assemble", json=valid_order, headers={"x-api-key": VALID_KEY})

    assert response.status_code == HTTPStatus.BAD_GATEWAY
    assert response.json() == {
        "error": "Failed to enrich item with SKU INVALID_SKU",
        "details": "Request failed with status code 404",
    }


def test_queue_unreachable(test_client, queue_transport, valid_order):
    queue_transport.fail_with = "Local: All broker connections are down"

    response = test_client.post("/orders/assemble", json=valid_order, headers={"x-api-key": VALID_KEY})

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert response.json() == {
        "error": "Failed to publish order to queue",
        "details": "Local: All broker connections are down",
    }


def test_unhandled_exception_renders_json():
    class ExplodingPipeline:
        async def run(self, api_key, body):
            raise RuntimeError("pipeline unavailable")

    app.dependency_overrides[get_pipeline] = lambda: ExplodingPipeline()
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/orders/assemble", json={}, headers={"x-api-key": VALID_KEY})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error", "details": "pipeline unavailable"}


def test_health_reports_fixed_service_name(test_client, monkeypatch):
    """The health body names the service even when the configured name differs."""
    monkeypatch.setattr("order_assembly_service.server.settings", Settings(service_name="orders-canary"))

    response = test_client.get("/health")

    assert response.json()["service"] == "order-assembly-service"
