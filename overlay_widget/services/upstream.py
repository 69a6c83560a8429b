from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from ..exceptions import RelayError

logger = logging.getLogger(__name__)

UPSTREAM_ERROR = "UPSTREAM_ERROR"
FORWARDED_KEY_HEADER = "x-overlay-key"


class UpstreamRelay:
    """Forwards BFF calls to the configured upstream origin and relays the answer as-is."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _forward_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        forwarded = {"content-type": headers.get("content-type") or "application/json"}
        key = headers.get(FORWARDED_KEY_HEADER)
        if key:
            forwarded[FORWARDED_KEY_HEADER] = key
        return forwarded

    async def forward(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str],
        params: Optional[dict[str, str]] = None,
        body: Any = None,
    ) -> tuple[int, Any]:
        kwargs: dict[str, Any] = {"headers": self._forward_headers(headers)}
        if params is not None:
            kwargs["params"] = params
        if body is not None:
            kwargs["json"] = body
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "upstream_unreachable",
                extra={"data": {"method": method, "path": path, "error": str(exc)}},
            )
            raise RelayError(502, UPSTREAM_ERROR) from exc

        if not response.content.strip():
            return response.status_code, {}
        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(
                "upstream_bad_body",
                extra={"data": {"method": method, "path": path, "status": response.status_code}},
            )
            raise RelayError(502, UPSTREAM_ERROR) from exc
        return response.status_code, payload


__all__ = ["UpstreamRelay", "UPSTREAM_ERROR", "FORWARDED_KEY_HEADER"]
