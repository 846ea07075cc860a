"""Test doubles shared by the test modules."""

import json

import httpx

from order_assembly_service.errors import QueueTransportError

VALID_KEY = "sk-test-valid-key-123456789"
LIMITED_KEY = "sk-test-limited-key-987654321"
CATALOG_URL = "http://card-catalog.test"
UUID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"

CATALOG = {
    "SKU100": {"sku": "SKU100", "name": "Charizard Holo", "set": "Base Set", "rarity": "Rare Holo"},
    "SKU200": {"sku": "SKU200", "name": "Pikachu", "set": "Jungle", "rarity": "Common"},
    "SKU300": {"sku": "SKU300", "name": "Mewtwo", "set": "Base Set", "rarity": "Rare"},
}


class FakeQueueTransport:
    """In-memory queue transport recording every message it accepts."""

    def __init__(self, topic: str = "assembled-orders"):
        self.topic = topic
        self.messages = []
        self.fail_with = None
        self.ready = True
        self.closed = False

    def send(self, body, attributes, key=None):
        if self.fail_with is not None:
            raise QueueTransportError(self.fail_with)
        self.messages.append({"body": json.loads(body), "attributes": dict(attributes), "key": key})
        return f"{self.topic}:0:{len(self.messages) - 1}"

    def is_ready(self):
        return self.ready

    def close(self):
        self.closed = True


def catalog_handler(request: httpx.Request) -> httpx.Response:
    """Card catalog stand-in: known SKUs resolve, a few SKUs simulate outages, the rest are 404."""
    sku = request.url.path.rsplit("/", 1)[-1]
    if sku == "TIMEOUT_SKU":
        raise httpx.ReadTimeout("timed out", request=request)
    if sku == "DOWN_SKU":
        raise httpx.ConnectError("connection refused", request=request)
    if sku == "TEXT_SKU":
        return httpx.Response(200, text="plain metadata")
    if sku in CATALOG:
        return httpx.Response(200, json=CATALOG[sku])
    return httpx.Response(404, json={"error": "SKU not found"})
