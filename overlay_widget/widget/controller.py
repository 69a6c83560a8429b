from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Optional

from ..exceptions import RequestError
from ..schemas import Buyer, Offer, Order, PurchaseItem, PurchaseRequest, Recipient
from .catalog_cache import CatalogCache
from .client import NetworkClient
from .embed import EmbedConfig
from .health import HealthMonitor
from .render import LOADING_OFFERS, SUBMITTING_ORDER, RenderFrame, Renderer, View
from .sanitize import UNKNOWN, sanitize_error_code
from .selection import SelectionModel
from .validator import FORM_FIELDS, CheckoutForm, validate_checkout

logger = logging.getLogger(__name__)


class ViewController:
    """Owns the current view and drives every transition of the widget.

    All methods are expected to run on the widget's event loop. Methods that
    start network work return the scheduled task, or ``None`` when nothing was
    scheduled, so callers can await settlement if they care to.
    """

    def __init__(
        self,
        *,
        config: EmbedConfig,
        client: NetworkClient,
        cache: CatalogCache,
        selection: SelectionModel,
        health: HealthMonitor,
        renderer: Renderer,
    ) -> None:
        self._config = config
        self._client = client
        self._cache = cache
        self._selection = selection
        self._health = health
        self._renderer = renderer

        self._view = View.CATALOG
        self._visible = False
        self._opened_once = False
        self._loading = False
        self._loading_message: Optional[str] = None
        self._error_code: Optional[str] = None
        self._order: Optional[Order] = None
        self._form: Optional[CheckoutForm] = None
        self._field_errors: dict[str, str] = {}
        self._catalog_entry = 0
        self._submit_task: Optional[asyncio.Task[None]] = None

    # -- read-only state -------------------------------------------------

    @property
    def view(self) -> View:
        return self._view

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error_code(self) -> Optional[str]:
        return self._error_code

    @property
    def order(self) -> Optional[Order]:
        return self._order

    @property
    def form(self) -> Optional[CheckoutForm]:
        return self._form

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self._field_errors)

    @property
    def selection(self) -> SelectionModel:
        return self._selection

    @property
    def submitting(self) -> bool:
        return self._submit_task is not None and not self._submit_task.done()

    # -- visibility ------------------------------------------------------

    def open(self) -> Optional[asyncio.Task[None]]:
        if self._visible:
            self._render()
            return None
        self._visible = True
        if not self._opened_once:
            self._opened_once = True
            task = self._enter(View.CATALOG)
            self._health.trigger("open")
            return task
        if self.submitting:
            self._render()
            return None
        return self._enter(self._view)

    def close(self) -> None:
        if not self._visible:
            return
        self._visible = False
        self._form = None
        self._field_errors = {}
        if self._view is View.CONFIRM:
            self._view = View.CATALOG
        self._render()

    def dismiss_confirmation(self) -> None:
        self.close()

    def retry_health(self) -> asyncio.Task[None]:
        return self._health.retry()

    # -- navigation ------------------------------------------------------

    def go_to_checkout(self) -> bool:
        if self._view is not View.CATALOG or self._loading or not self._cache.is_loaded:
            return False
        if not self._selection.selected_items():
            logger.debug("Checkout requested with an empty selection")
            return False
        self._enter(View.CHECKOUT)
        return True

    def back(self) -> Optional[asyncio.Task[None]]:
        if self._view is View.CHECKOUT and self.submitting:
            return None
        if self._view in (View.CHECKOUT, View.ERROR):
            return self._enter(View.CATALOG)
        return None

    # -- selection -------------------------------------------------------

    def increment(self, offer_id: str) -> Optional[int]:
        offer = self._editable_offer(offer_id)
        if offer is None:
            return None
        qty = self._selection.increment(offer.id, offer.max_per_order)
        self._render()
        return qty

    def decrement(self, offer_id: str) -> Optional[int]:
        offer = self._editable_offer(offer_id)
        if offer is None:
            return None
        qty = self._selection.decrement(offer.id)
        self._render()
        return qty

    def set_quantity(self, offer_id: str, raw: Any) -> Optional[int]:
        offer = self._editable_offer(offer_id)
        if offer is None:
            return None
        qty = self._selection.set_quantity(offer.id, raw, offer.max_per_order)
        self._render()
        return qty

    def _editable_offer(self, offer_id: str) -> Optional[Offer]:
        catalog = self._cache.catalog
        if self._view is not View.CATALOG or self._loading or catalog is None:
            return None
        return catalog.find(offer_id)

    # -- checkout --------------------------------------------------------

    def update_form(self, **fields: str) -> None:
        if self._view is not View.CHECKOUT or self._form is None:
            return
        unknown = set(fields) - FORM_FIELDS
        if unknown:
            raise AttributeError(f"Unknown checkout field(s): {', '.join(sorted(unknown))}")
        self._form = replace(self._form, **fields)

    def submit(self, form: Optional[CheckoutForm] = None) -> Optional[asyncio.Task[None]]:
        if self._view is not View.CHECKOUT or self.submitting:
            return None
        if form is not None:
            self._form = form
        current = self._form or CheckoutForm()
        self._form = current

        self._field_errors = validate_checkout(current)
        if self._field_errors:
            self._render()
            return None
        items = self._selection.selected_items()
        if not items:
            return None

        clean = current.normalized()
        payload = PurchaseRequest(
            merchant_id=self._config.merchant_id,
            buyer=Buyer(name=clean.buyer_name, email=clean.buyer_email),
            recipient=Recipient(email=clean.recipient_email),
            items=[PurchaseItem(offer_id=offer_id, qty=qty) for offer_id, qty in items],
        )
        self._set_loading(SUBMITTING_ORDER)
        self._render()
        task = asyncio.get_running_loop().create_task(self._run_submit(payload))
        self._submit_task = task
        return task

    async def _run_submit(self, payload: PurchaseRequest) -> None:
        order: Optional[Order] = None
        code: Optional[str] = None
        trace_id: Optional[str] = None
        try:
            order = await self._client.submit_purchase(payload)
        except RequestError as exc:
            code, trace_id = exc.code, exc.trace_id
        except Exception:
            logger.exception("Purchase submission crashed")
            code = UNKNOWN
        self._submit_task = None
        self._clear_loading()
        if order is not None:
            self._order = order
            self._form = None
            self._enter(View.CONFIRM)
        else:
            logger.warning("purchase_failed", extra={"data": {"code": code, "trace_id": trace_id}})
            self._fail(code)

    # -- transitions -----------------------------------------------------

    def _enter(self, view: View) -> Optional[asyncio.Task[None]]:
        logger.debug("view %s -> %s", self._view.value, view.value)
        self._view = view
        self._clear_loading()
        if view is View.CATALOG:
            self._error_code = None
            self._form = None
            self._field_errors = {}
            if self._cache.is_loaded:
                self._render()
                return None
            self._catalog_entry += 1
            self._set_loading(LOADING_OFFERS)
            self._render()
            return asyncio.get_running_loop().create_task(self._load_catalog(self._catalog_entry))
        if view is View.CHECKOUT:
            self._form = CheckoutForm()
            self._field_errors = {}
        elif view is View.CONFIRM and self._order is None:
            self._fail(UNKNOWN)
            return None
        self._render()
        return None

    async def _load_catalog(self, entry: int) -> None:
        code: Optional[str] = None
        try:
            await self._cache.fetch_offers_once()
        except RequestError as exc:
            code = exc.code
        except Exception:
            logger.exception("Catalog load crashed")
            code = UNKNOWN
        if self._view is not View.CATALOG or entry != self._catalog_entry:
            logger.debug("Dropping stale catalog result")
            return
        self._clear_loading()
        if code is not None:
            self._fail(code)
        else:
            self._render()

    def _fail(self, code: Optional[str]) -> None:
        self._view = View.ERROR
        self._error_code = sanitize_error_code(code)
        self._clear_loading()
        self._render()

    def _set_loading(self, message: str) -> None:
        self._loading = True
        self._loading_message = message

    def _clear_loading(self) -> None:
        self._loading = False
        self._loading_message = None

    # -- rendering -------------------------------------------------------

    def frame(self) -> RenderFrame:
        return RenderFrame(
            view=self._view,
            visible=self._visible,
            loading=self._loading,
            loading_message=self._loading_message,
            data=self._frame_data(),
            error=self._error_code if self._view is View.ERROR else None,
        )

    def _frame_data(self) -> dict[str, Any]:
        catalog = self._cache.catalog
        if self._view is View.CONFIRM:
            return {"order": self._order}
        if self._view is View.ERROR or catalog is None:
            return {}
        subtotal = self._selection.subtotal(catalog.offers)
        if self._view is View.CATALOG:
            count = self._selection.item_count()
            return {
                "offers": list(catalog.offers),
                "quantities": self._selection.snapshot(),
                "item_count": count,
                "subtotal_minor": subtotal,
                "currency": catalog.currency,
                "can_checkout": count > 0,
            }
        return {
            "items": [
                {"offer_id": offer_id, "offer": catalog.find(offer_id), "qty": qty}
                for offer_id, qty in self._selection.selected_items()
            ],
            "subtotal_minor": subtotal,
            "currency": catalog.currency,
            "form": self._form,
            "field_errors": dict(self._field_errors),
        }

    def _render(self) -> None:
        try:
            self._renderer(self.frame())
        except Exception:
            logger.exception("Renderer failed for view %s", self._view.value)


__all__ = ["ViewController"]
