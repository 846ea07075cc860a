"""Test fixtures for the order assembly service tests."""

from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from order_assembly_service.enrichment import CatalogEnrichmentClient
from order_assembly_service.pipeline import AssemblyPipeline
from order_assembly_service.publisher import QueuePublisher
from order_assembly_service.registry import ApiKeyRegistry, default_credentials
from order_assembly_service.server import app, get_pipeline
from order_assembly_service.validator import PayloadValidator

from .support import CATALOG_URL, FakeQueueTransport, catalog_handler


@pytest.fixture
def now():
    """Fixed clock value before the limited key expires."""
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry(now):
    return ApiKeyRegistry(default_credentials(), clock=lambda: now)


@pytest.fixture
def valid_order():
    """Fixture for a valid order payload."""
    return {
        "order_id": "O1",
        "customer_id": "C1",
        "items": [{"sku": "SKU100", "quantity": 2}],
        "order_ts": "2025-01-31T10:00:00Z",
    }


@pytest.fixture
def catalog_requests():
    """Catalog paths requested, in request order."""
    return []


@pytest.fixture
def catalog_client(catalog_requests):
    def handler(request):
        catalog_requests.append(request.url.path)
        return catalog_handler(request)

    http_client = httpx.AsyncClient(base_url=CATALOG_URL, transport=httpx.MockTransport(handler))
    return CatalogEnrichmentClient(CATALOG_URL, client=http_client)


@pytest.fixture
def queue_transport():
    return FakeQueueTransport()


@pytest.fixture
def pipeline(registry, catalog_client, queue_transport):
    return AssemblyPipeline(
        registry=registry,
        validator=PayloadValidator(),
        enricher=catalog_client,
        publisher=QueuePublisher(queue_transport),
    )


@pytest.fixture
def test_client(pipeline):
    """Test client whose requests run through the fixture pipeline instead of live Kafka."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()
