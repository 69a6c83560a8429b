from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .api import bff_router, static_router
from .api.bff import json_response
from .config import Settings, get_settings
from .exceptions import RelayError
from .services.upstream import FORWARDED_KEY_HEADER, UpstreamRelay

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type", FORWARDED_KEY_HEADER]
TRACE_HEADER = "x-trace-id"


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "relay_start",
        extra={"data": {"static_dir": settings.static_dir, "upstream": settings.upstream_bff_base or None}},
    )
    try:
        yield
    finally:
        relay: Optional[UpstreamRelay] = app.state.upstream
        if relay is not None:
            await relay.aclose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    resolved = settings or get_settings()
    app = FastAPI(title="Overlay Widget Relay", lifespan=_lifespan)
    app.state.settings = resolved
    app.state.upstream = (
        UpstreamRelay(
            resolved.upstream_bff_base,
            timeout_seconds=resolved.upstream_timeout_seconds,
            transport=upstream_transport,
        )
        if resolved.has_upstream
        else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(RelayError)
    async def _relay_error(request: Request, exc: RelayError):
        logger.info(
            "relay_error",
            extra={
                "data": {
                    "path": request.url.path,
                    "status": exc.status_code,
                    "code": exc.code,
                    "trace_id": exc.trace_id,
                }
            },
        )
        return json_response({"error": exc.code}, exc.status_code, headers={TRACE_HEADER: exc.trace_id})

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "upstream": resolved.has_upstream,
            "key_required": resolved.key_required,
        }

    @app.options("/{path:path}", include_in_schema=False)
    def options(path: str) -> Response:
        return Response(
            status_code=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
                "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
            },
        )

    app.include_router(bff_router)
    app.include_router(static_router)

    return app


__all__ = ["create_app"]
