from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..schemas import Catalog
from .client import NetworkClient

logger = logging.getLogger(__name__)


class CatalogCache:
    """Session-scoped, single-flight memo of one catalog read.

    Callers arriving while a read is outstanding await the same task. Only a
    successful read is kept; after a failure the next call reads again.
    """

    def __init__(self, client: NetworkClient) -> None:
        self._client = client
        self._catalog: Optional[Catalog] = None
        self._inflight: Optional[asyncio.Task[Catalog]] = None
        self.reads = 0

    @property
    def catalog(self) -> Optional[Catalog]:
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    async def fetch_offers_once(self) -> Catalog:
        if self._catalog is not None:
            return self._catalog
        if self._inflight is None:
            self._inflight = asyncio.get_running_loop().create_task(self._read())
        # a cancelled caller leaves the shared read running for the others
        return await asyncio.shield(self._inflight)

    async def _read(self) -> Catalog:
        self.reads += 1
        try:
            catalog = (await self._client.read_catalog()).active_only()
        finally:
            self._inflight = None
        self._catalog = catalog
        logger.debug("Cached %s active offers", len(catalog.offers))
        return catalog


__all__ = ["CatalogCache"]
