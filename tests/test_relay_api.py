import json
from pathlib import Path

import httpx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from overlay_widget.api.static import content_type_for, safe_resolve
from overlay_widget.config import refresh_settings

UPSTREAM = "http://upstream.test"


class Upstream:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.reply: object = httpx.Response(200, json={"offers": []})

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


def _create_app(tmp_path, monkeypatch, upstream=None, *, key="", base="", max_body=None):
    (tmp_path / "index.html").write_text("<html>widget</html>", encoding="utf-8")
    (tmp_path / "demo").mkdir()
    (tmp_path / "demo" / "index.html").write_text("<html>demo</html>", encoding="utf-8")
    (tmp_path / "overlay.js").write_text("console.log('overlay')", encoding="utf-8")
    monkeypatch.setenv("STATIC_DIR", str(tmp_path))
    monkeypatch.setenv("WIDGET_OVERLAY_KEY", key)
    monkeypatch.setenv("UPSTREAM_BFF_BASE", base)
    monkeypatch.setenv("MAX_BODY_BYTES", str(max_body or 1_000_000))
    settings = refresh_settings()
    from overlay_widget.main import create_app

    transport = httpx.MockTransport(upstream.handle) if upstream is not None else None
    return create_app(settings, upstream_transport=transport)


def test_catalog_without_upstream_is_empty(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch)
    with TestClient(app) as client:
        response = client.get("/api/bff/demo/catalog", params={"merchantId": "demo-merchant-1"})
    assert response.status_code == 200
    assert response.json() == {"merchantId": "demo-merchant-1", "offers": []}
    assert response.headers["cache-control"] == "no-cache"


def test_overlay_key_is_enforced(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch, key="DEMO_KEY_123")
    with TestClient(app) as client:
        missing = client.get("/api/bff/demo/catalog")
        wrong = client.get("/api/bff/demo/catalog", headers={"x-overlay-key": "nope"})
        right = client.get("/api/bff/demo/catalog", headers={"x-overlay-key": "DEMO_KEY_123"})
        purchase = client.post("/api/bff/demo/purchase", json={})
    assert missing.status_code == 401
    assert missing.json() == {"error": "UNAUTHORISED"}
    assert missing.headers["x-trace-id"]
    assert missing.headers["x-trace-id"] != wrong.headers["x-trace-id"]
    assert wrong.status_code == 401
    assert right.status_code == 200
    assert purchase.status_code == 401


def test_purchase_without_upstream(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch)
    with TestClient(app) as client:
        response = client.post("/api/bff/demo/purchase", json={"items": []})
    assert response.status_code == 501
    assert response.json() == {"error": "NO_UPSTREAM"}


def test_forwards_to_upstream_and_relays_answer(tmp_path, monkeypatch, upstream) -> None:
    upstream.reply = httpx.Response(409, json={"error": "QTY_LIMIT"})
    app = _create_app(tmp_path, monkeypatch, upstream, base=UPSTREAM + "/")
    body = {"merchantId": "m", "items": [{"offerId": "gc-25", "qty": 9}]}
    with TestClient(app) as client:
        response = client.post(
            "/api/bff/demo/purchase",
            json=body,
            headers={"x-overlay-key": "DEMO_KEY_123", "cookie": "session=1"},
        )
    assert response.status_code == 409
    assert response.json() == {"error": "QTY_LIMIT"}

    sent = upstream.requests[0]
    assert str(sent.url) == UPSTREAM + "/api/bff/demo/purchase"
    assert sent.method == "POST"
    assert sent.headers["x-overlay-key"] == "DEMO_KEY_123"
    assert "cookie" not in sent.headers
    assert json.loads(sent.content) == body


def test_catalog_forwarding_keeps_merchant_param(tmp_path, monkeypatch, upstream) -> None:
    app = _create_app(tmp_path, monkeypatch, upstream, base=UPSTREAM)
    with TestClient(app) as client:
        response = client.get("/api/bff/demo/catalog", params={"merchantId": "demo-merchant-1"})
    assert response.status_code == 200
    assert upstream.requests[0].url.params["merchantId"] == "demo-merchant-1"


def test_upstream_failures_become_502(tmp_path, monkeypatch, upstream) -> None:
    app = _create_app(tmp_path, monkeypatch, upstream, base=UPSTREAM)
    with TestClient(app) as client:
        upstream.reply = httpx.ConnectError("refused")
        unreachable = client.get("/api/bff/demo/catalog")
        upstream.reply = httpx.Response(200, content=b"<html>gateway</html>")
        garbled = client.get("/api/bff/demo/catalog")
    assert unreachable.status_code == 502
    assert unreachable.json() == {"error": "UPSTREAM_ERROR"}
    assert garbled.status_code == 502


def test_purchase_body_checks(tmp_path, monkeypatch, upstream) -> None:
    app = _create_app(tmp_path, monkeypatch, upstream, base=UPSTREAM, max_body=64)
    with TestClient(app) as client:
        bad = client.post(
            "/api/bff/demo/purchase",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        large = client.post("/api/bff/demo/purchase", json={"pad": "x" * 200})
        wrong_method = client.get("/api/bff/demo/purchase")
    assert bad.status_code == 400
    assert bad.json() == {"error": "BAD_JSON"}
    assert large.status_code == 413
    assert large.json() == {"error": "PAYLOAD_TOO_LARGE"}
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"error": "METHOD_NOT_ALLOWED"}
    assert upstream.requests == []


def test_chunked_purchase_body_is_capped(tmp_path, monkeypatch, upstream) -> None:
    app = _create_app(tmp_path, monkeypatch, upstream, base=UPSTREAM, max_body=64)

    def chunks():
        yield b'{"pad": "'
        for _ in range(10):
            yield b"x" * 32
        yield b'"}'

    with TestClient(app) as client:
        response = client.post(
            "/api/bff/demo/purchase",
            content=chunks(),
            headers={"content-type": "application/json"},
        )
    assert response.status_code == 413
    assert response.json() == {"error": "PAYLOAD_TOO_LARGE"}
    assert upstream.requests == []


def test_options_and_cors_preflight(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch)
    with TestClient(app) as client:
        bare = client.options("/api/bff/demo/purchase")
        preflight = client.options(
            "/api/bff/demo/purchase",
            headers={
                "Origin": "https://shop.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, x-overlay-key",
            },
        )
        simple = client.get("/api/bff/demo/catalog", headers={"Origin": "https://shop.example.com"})
    assert bare.status_code == 204
    assert bare.headers["access-control-allow-origin"] == "*"
    assert preflight.status_code == 200
    assert preflight.headers["access-control-allow-origin"] == "*"
    assert "POST" in preflight.headers["access-control-allow-methods"]
    assert simple.headers["access-control-allow-origin"] == "*"


def test_static_assets(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch)
    with TestClient(app) as client:
        root = client.get("/")
        nested = client.get("/demo/")
        script = client.get("/overlay.js")
        missing = client.get("/nope.css")
    assert root.status_code == 200
    assert root.text == "<html>widget</html>"
    assert root.headers["content-type"].startswith("text/html")
    assert root.headers["cache-control"] == "no-cache"
    assert nested.text == "<html>demo</html>"
    assert script.headers["content-type"].startswith("application/javascript")
    assert missing.status_code == 404


def test_safe_resolve_refuses_escapes(tmp_path) -> None:
    root = tmp_path.resolve()
    assert safe_resolve(root, "demo/index.html") == root / "demo" / "index.html"
    assert safe_resolve(root, "/overlay.js") == root / "overlay.js"
    for escape in ("../secret.txt", "demo/../../etc/passwd"):
        with pytest.raises(HTTPException) as info:
            safe_resolve(root, escape)
        assert info.value.status_code == 403


def test_content_types() -> None:
    assert content_type_for(Path("a.SVG")) == "image/svg+xml"
    assert content_type_for(Path("blob.bin")) == "application/octet-stream"


def test_health_endpoint(tmp_path, monkeypatch) -> None:
    app = _create_app(tmp_path, monkeypatch, key="k")
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.json() == {"status": "ok", "upstream": False, "key_required": True}
