from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

MERCHANT_ATTR = "data-merchant-id"
API_KEY_ATTR = "data-api-key"
API_BASE_ATTR = "data-api-base"
OVERLAY_KEY_HEADER = "x-overlay-key"


@dataclass(frozen=True)
class EmbedConfig:
    """Settings read once from the including element's attributes."""

    merchant_id: str
    api_base: str
    api_key: str = ""

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str | None], page_origin: str) -> EmbedConfig:
        merchant_id = (attributes.get(MERCHANT_ATTR) or "").strip()
        if not merchant_id:
            logger.warning("Missing %s on the embedding element", MERCHANT_ATTR)
        api_key = (attributes.get(API_KEY_ATTR) or "").strip()
        api_base = (attributes.get(API_BASE_ATTR) or page_origin or "").strip()
        if api_base.endswith("/"):
            api_base = api_base[:-1]
        return cls(merchant_id=merchant_id, api_base=api_base, api_key=api_key)

    def request_headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {OVERLAY_KEY_HEADER: self.api_key}


__all__ = [
    "EmbedConfig",
    "MERCHANT_ATTR",
    "API_KEY_ATTR",
    "API_BASE_ATTR",
    "OVERLAY_KEY_HEADER",
]
