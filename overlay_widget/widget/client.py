from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..exceptions import RequestError
from ..schemas import Catalog, Offer, Order, PurchaseRequest
from .embed import EmbedConfig
from .sanitize import BAD_RESPONSE, NETWORK, PARSE, REQUEST_FAILED

logger = logging.getLogger(__name__)

CATALOG_PATH = "/api/bff/demo/catalog"
PURCHASE_PATH = "/api/bff/demo/purchase"


def _error_code(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    value = body.get("error")
    if not value:
        return None
    return value if isinstance(value, str) else str(value)


class NetworkClient:
    """Performs the catalog read and purchase write, one attempt per call.

    Every failure is raised as :class:`RequestError` whose ``code`` is one of
    ``NETWORK``, ``PARSE``, ``REQUEST_FAILED``, ``BAD_RESPONSE`` or a code the
    server supplied, passed through verbatim.
    """

    def __init__(
        self,
        config: EmbedConfig,
        *,
        settings: Optional[Settings] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        resolved_settings = settings or get_settings()
        timeout = (
            float(timeout_seconds)
            if timeout_seconds is not None
            else float(resolved_settings.request_timeout_seconds)
        )
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_base,
            timeout=timeout,
            headers=config.request_headers(),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def read_catalog(self, merchant_id: Optional[str] = None, *, no_store: bool = False) -> Catalog:
        params = {"merchantId": self.config.merchant_id if merchant_id is None else merchant_id}
        headers = {"Cache-Control": "no-store"} if no_store else None
        response = await self._send("GET", CATALOG_PATH, params=params, headers=headers)
        body = self._expect_success(response, self._decode(response, strict=False))

        raw_offers = body.get("offers") if isinstance(body, dict) else None
        if not isinstance(raw_offers, list):
            raise RequestError(BAD_RESPONSE, detail="catalog response has no offer list")
        offers = []
        for item in raw_offers:
            if not isinstance(item, dict):
                continue
            try:
                offers.append(Offer.model_validate(item))
            except ValidationError as exc:
                # only active offers have to be well formed
                if item.get("active") is not True:
                    logger.debug("Skipping unusable inactive offer %r", item.get("id"))
                    continue
                raise RequestError(BAD_RESPONSE, detail=f"invalid offer: {exc.error_count()} error(s)") from exc
        try:
            catalog = Catalog(merchant_id=body.get("merchantId"), offers=offers)
        except ValidationError as exc:
            raise RequestError(BAD_RESPONSE, detail="invalid catalog merchant id") from exc
        logger.info(
            "catalog_read",
            extra={"data": {"merchant_id": catalog.merchant_id, "offers": len(catalog.offers)}},
        )
        return catalog

    async def submit_purchase(self, payload: PurchaseRequest) -> Order:
        response = await self._send(
            "POST",
            PURCHASE_PATH,
            json=payload.to_wire(),
            headers={"content-type": "application/json"},
        )
        body = self._expect_success(response, self._decode(response, strict=True))
        try:
            order = Order.model_validate(body)
        except ValidationError as exc:
            raise RequestError(BAD_RESPONSE, detail="purchase response is not an order") from exc
        logger.info(
            "purchase_ok",
            extra={"data": {"order_id": order.order_id, "gift_cards": len(order.gift_cards)}},
        )
        return order

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            error = RequestError(NETWORK, detail=str(exc))
            logger.warning(
                "request_unsent",
                extra={"data": {"method": method, "url": url, "error": str(exc), "trace_id": error.trace_id}},
            )
            raise error from exc

    def _decode(self, response: httpx.Response, *, strict: bool) -> Any:
        """Parse the JSON body.

        With ``strict`` any unreadable body is ``PARSE``. Otherwise only a
        successful response must be readable; a failed one decodes to ``None``
        and is reported as a plain failure.
        """
        try:
            return response.json()
        except ValueError:
            if strict or response.is_success:
                raise RequestError(PARSE, detail=f"status {response.status_code}") from None
            return None

    def _expect_success(self, response: httpx.Response, body: Any) -> Any:
        code = _error_code(body)
        if response.is_success and not code:
            return body
        if response.is_success:
            error = RequestError(code, detail="error field in successful response")
        else:
            error = RequestError(code or REQUEST_FAILED, detail=f"status {response.status_code}")
        logger.warning(
            "request_failed",
            extra={
                "data": {
                    "url": str(response.request.url),
                    "status": response.status_code,
                    "code": error.code,
                    "trace_id": error.trace_id,
                }
            },
        )
        raise error


__all__ = ["NetworkClient", "CATALOG_PATH", "PURCHASE_PATH"]
