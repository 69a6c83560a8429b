"""Registry of mounted widget instances.

Mounting twice under the same id hands back the instance that is already
there instead of building a second one.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import httpx

from ..config import Settings, get_settings
from .catalog_cache import CatalogCache
from .client import NetworkClient
from .controller import ViewController
from .embed import EmbedConfig
from .health import HealthMonitor, StatusListener
from .render import Renderer
from .selection import SelectionModel

logger = logging.getLogger(__name__)

DEFAULT_MOUNT_ID = "overlay-widget-host"


class OverlayWidget:
    """One widget instance with its own client, cache, cart and monitors."""

    def __init__(
        self,
        mount_id: str,
        config: EmbedConfig,
        renderer: Renderer,
        *,
        settings: Optional[Settings] = None,
        status_listener: Optional[StatusListener] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        resolved = settings or get_settings()
        self.mount_id = mount_id
        self.config = config
        self.client = NetworkClient(config, settings=resolved, transport=transport)
        self.cache = CatalogCache(self.client)
        self.selection = SelectionModel()
        self.health = HealthMonitor(self.client, settings=resolved, listener=status_listener)
        self.controller = ViewController(
            config=config,
            client=self.client,
            cache=self.cache,
            selection=self.selection,
            health=self.health,
            renderer=renderer,
        )

    def start(self, passive_delay: Optional[float] = None) -> None:
        self.health.schedule_passive_check(passive_delay)

    async def aclose(self) -> None:
        await self.health.aclose()
        await self.client.aclose()


class WidgetRegistry:
    def __init__(self) -> None:
        self._mounted: dict[str, OverlayWidget] = {}

    def get(self, mount_id: str) -> Optional[OverlayWidget]:
        return self._mounted.get(mount_id)

    def __contains__(self, mount_id: object) -> bool:
        return mount_id in self._mounted

    def mount(
        self,
        config: EmbedConfig,
        renderer: Renderer,
        *,
        mount_id: str = DEFAULT_MOUNT_ID,
        settings: Optional[Settings] = None,
        status_listener: Optional[StatusListener] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        passive_delay: Optional[float] = None,
    ) -> OverlayWidget:
        existing = self._mounted.get(mount_id)
        if existing is not None:
            logger.debug("Widget %s already mounted; reusing it", mount_id)
            return existing
        widget = OverlayWidget(
            mount_id,
            config,
            renderer,
            settings=settings,
            status_listener=status_listener,
            transport=transport,
        )
        self._mounted[mount_id] = widget
        widget.start(passive_delay)
        logger.debug("Mounted widget %s for merchant %s", mount_id, config.merchant_id or "<missing>")
        return widget

    def mount_from_attributes(
        self,
        attributes: Mapping[str, Optional[str]],
        page_origin: str,
        renderer: Renderer,
        **kwargs,
    ) -> OverlayWidget:
        mount_id = kwargs.pop("mount_id", DEFAULT_MOUNT_ID)
        existing = self._mounted.get(mount_id)
        if existing is not None:
            return existing
        config = EmbedConfig.from_attributes(attributes, page_origin)
        return self.mount(config, renderer, mount_id=mount_id, **kwargs)

    async def unmount(self, mount_id: str) -> bool:
        widget = self._mounted.pop(mount_id, None)
        if widget is None:
            return False
        await widget.aclose()
        return True


widget_registry = WidgetRegistry()


__all__ = ["DEFAULT_MOUNT_ID", "OverlayWidget", "WidgetRegistry", "widget_registry"]
