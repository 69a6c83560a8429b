from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..config import Settings
from ..exceptions import RelayError
from ..services.upstream import FORWARDED_KEY_HEADER, UpstreamRelay

router = APIRouter(prefix="/api/bff/demo", tags=["bff"])

CATALOG_PATH = "/api/bff/demo/catalog"
PURCHASE_PATH = "/api/bff/demo/purchase"
NO_CACHE = {"Cache-Control": "no-cache"}


def json_response(payload: Any, status_code: int = 200, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(content=payload, status_code=status_code, headers={**NO_CACHE, **(headers or {})})


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_relay(request: Request) -> Optional[UpstreamRelay]:
    return request.app.state.upstream


def require_overlay_key(request: Request, settings: Settings = Depends(_get_settings)) -> None:
    if not settings.key_required:
        return
    if request.headers.get(FORWARDED_KEY_HEADER) != settings.overlay_key:
        raise RelayError(401, "UNAUTHORISED")


async def _read_json_body(request: Request, max_bytes: int) -> Any:
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise RelayError(413, "PAYLOAD_TOO_LARGE")
    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > max_bytes:
            raise RelayError(413, "PAYLOAD_TOO_LARGE")
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise RelayError(400, "BAD_JSON") from exc


@router.get("/catalog", dependencies=[Depends(require_overlay_key)])
async def read_catalog(
    request: Request,
    merchant_id: Optional[str] = Query(None, alias="merchantId"),
    relay: Optional[UpstreamRelay] = Depends(_get_relay),
) -> JSONResponse:
    if relay is None:
        # no upstream: an empty catalog, so the widget shows no active offers
        return json_response({"merchantId": merchant_id, "offers": []})
    status_code, payload = await relay.forward(
        "GET",
        CATALOG_PATH,
        headers=request.headers,
        params={"merchantId": merchant_id or ""},
    )
    return json_response(payload, status_code)


@router.post("/purchase", dependencies=[Depends(require_overlay_key)])
async def submit_purchase(
    request: Request,
    settings: Settings = Depends(_get_settings),
    relay: Optional[UpstreamRelay] = Depends(_get_relay),
) -> JSONResponse:
    if relay is None:
        raise RelayError(501, "NO_UPSTREAM")
    body = await _read_json_body(request, settings.max_body_bytes)
    status_code, payload = await relay.forward(
        "POST",
        PURCHASE_PATH,
        headers=request.headers,
        body=body,
    )
    return json_response(payload, status_code)


@router.api_route("/purchase", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def purchase_wrong_method() -> JSONResponse:
    raise RelayError(405, "METHOD_NOT_ALLOWED")


__all__ = ["router", "json_response", "require_overlay_key"]
