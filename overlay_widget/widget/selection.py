from __future__ import annotations

from typing import Any, Iterable, Optional

from ..schemas import Offer


def parse_quantity(raw: Any) -> int:
    """Coerce free-form quantity input to a non-negative integer; anything unusable is 0."""
    if isinstance(raw, bool) or raw is None:
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    text = str(raw).strip()
    if not text:
        return 0
    try:
        value = int(text)
    except ValueError:
        try:
            number = float(text)
        except ValueError:
            return 0
        if not number.is_integer():
            return 0
        value = int(number)
    return max(value, 0)


def _clamp(quantity: int, max_qty: Optional[int]) -> int:
    if max_qty is not None:
        quantity = min(quantity, max_qty)
    return max(quantity, 0)


class SelectionModel:
    """The cart: offer id -> positive quantity.

    Zero quantities are never stored. When a per-order maximum is passed the stored
    quantity never exceeds it.
    """

    def __init__(self) -> None:
        self._quantities: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._quantities)

    def __contains__(self, offer_id: object) -> bool:
        return offer_id in self._quantities

    def quantity(self, offer_id: str) -> int:
        return self._quantities.get(offer_id, 0)

    def _store(self, offer_id: str, quantity: int) -> int:
        if quantity <= 0:
            self._quantities.pop(offer_id, None)
            return 0
        self._quantities[offer_id] = quantity
        return quantity

    def increment(self, offer_id: str, max_qty: Optional[int] = None) -> int:
        return self._store(offer_id, _clamp(self.quantity(offer_id) + 1, max_qty))

    def decrement(self, offer_id: str) -> int:
        return self._store(offer_id, self.quantity(offer_id) - 1)

    def set_quantity(self, offer_id: str, raw: Any, max_qty: Optional[int] = None) -> int:
        return self._store(offer_id, _clamp(parse_quantity(raw), max_qty))

    def selected_items(self) -> list[tuple[str, int]]:
        return [(offer_id, qty) for offer_id, qty in self._quantities.items() if qty > 0]

    def item_count(self) -> int:
        return sum(self._quantities.values())

    def subtotal(self, offers: Iterable[Offer]) -> int:
        prices = {offer.id: offer.amount_minor for offer in offers}
        # Ids missing from the offer list contribute nothing.
        return sum(prices.get(offer_id, 0) * qty for offer_id, qty in self.selected_items())

    def snapshot(self) -> dict[str, int]:
        return dict(self._quantities)


__all__ = ["SelectionModel", "parse_quantity"]
