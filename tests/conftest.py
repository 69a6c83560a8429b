import asyncio
from typing import Any

import httpx
import pytest

from overlay_widget.config import Settings
from overlay_widget.widget.client import CATALOG_PATH, PURCHASE_PATH
from overlay_widget.widget.embed import EmbedConfig
from overlay_widget.widget.registry import OverlayWidget

API_BASE = "http://bff.test"


def offer(offer_id: str = "gc-25", **overrides: Any) -> dict:
    payload = {
        "id": offer_id,
        "merchantId": "demo-merchant-1",
        "name": "Gift card",
        "description": "Spend it anywhere",
        "currency": "EUR",
        "amountMinor": 500,
        "maxPerOrder": 2,
        "tags": ["gift"],
        "active": True,
    }
    payload.update(overrides)
    return payload


def order_payload(**overrides: Any) -> dict:
    payload = {
        "orderId": "ord-1",
        "merchantId": "demo-merchant-1",
        "currency": "EUR",
        "subtotalMinor": 1000,
        "feeMinor": 0,
        "totalMinor": 1000,
        "buyer": {"name": "Jane Doe", "email": "jane@acme.com"},
        "giftCards": [
            {
                "code": "ABCD-1234",
                "offerId": "gc-25",
                "valueMinor": 500,
                "currency": "EUR",
                "recipientEmail": "friend@example.com",
            }
        ],
    }
    payload.update(overrides)
    return payload


class FakeBff:
    """Scripted BFF behind an httpx.MockTransport.

    Each queue entry is ``(status, body)`` or an exception to raise. The last
    entry of a queue keeps answering once earlier ones are used up. Entries are
    taken in arrival order, before waiting on the gate. Catalog
    reads sent with ``Cache-Control: no-store`` are health probes and use
    their own queue.
    """

    def __init__(self) -> None:
        self.catalog: list = [(200, {"merchantId": "demo-merchant-1", "offers": [offer()]})]
        self.purchase: list = [(200, order_payload())]
        self.requests: list[httpx.Request] = []
        self.probe: list = [(200, {"offers": []})]
        self.catalog_gate: asyncio.Event | None = None
        self.probe_gate: asyncio.Event | None = None
        self.purchase_gate: asyncio.Event | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def catalog_reads(self) -> list[httpx.Request]:
        return [r for r in self.calls(CATALOG_PATH) if r.headers.get("cache-control") != "no-store"]

    def probes(self) -> list[httpx.Request]:
        return [r for r in self.calls(CATALOG_PATH) if r.headers.get("cache-control") == "no-store"]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == CATALOG_PATH and request.headers.get("cache-control") == "no-store":
            queue, gate = self.probe, self.probe_gate
        elif request.url.path == CATALOG_PATH:
            queue, gate = self.catalog, self.catalog_gate
        elif request.url.path == PURCHASE_PATH:
            queue, gate = self.purchase, self.purchase_gate
        else:
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if gate is not None:
            await gate.wait()
        if isinstance(entry, Exception):
            raise entry
        status, body = entry
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=body)


@pytest.fixture
def fake_bff() -> FakeBff:
    return FakeBff()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        request_timeout_seconds=5.0,
        health_timeout_seconds=0.2,
        health_delay_seconds=0.01,
    )


@pytest.fixture
def embed_config() -> EmbedConfig:
    return EmbedConfig(merchant_id="demo-merchant-1", api_base=API_BASE, api_key="DEMO_KEY_123")


@pytest.fixture
def build_widget(fake_bff, settings, embed_config):
    """Return a factory; call it inside the running loop of the test scenario."""

    def _build(**kwargs: Any):
        frames: list = []
        widget = OverlayWidget(
            kwargs.pop("mount_id", "test-host"),
            kwargs.pop("config", embed_config),
            frames.append,
            settings=settings,
            transport=fake_bff.transport,
            **kwargs,
        )
        return widget, frames

    return _build


@pytest.fixture
def make_offer():
    return offer


@pytest.fixture
def make_order():
    return order_payload
