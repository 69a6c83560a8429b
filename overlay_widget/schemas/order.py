from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .catalog import DEFAULT_CURRENCY, WireModel


class Buyer(WireModel):
    name: str
    email: str


class Recipient(WireModel):
    email: str


class PurchaseItem(WireModel):
    offer_id: str
    qty: int = Field(ge=1)


class PurchaseRequest(WireModel):
    merchant_id: str
    buyer: Buyer
    recipient: Recipient
    items: List[PurchaseItem] = Field(default_factory=list)


class GiftCard(WireModel):
    code: str
    offer_id: Optional[str] = None
    value_minor: int = 0
    currency: Optional[str] = None
    recipient_email: Optional[str] = None


class Order(WireModel):
    order_id: str
    merchant_id: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    subtotal_minor: int = 0
    fee_minor: int = 0
    total_minor: int
    buyer: Optional[Buyer] = None
    gift_cards: List[GiftCard] = Field(default_factory=list)


__all__ = [
    "Buyer",
    "Recipient",
    "PurchaseItem",
    "PurchaseRequest",
    "GiftCard",
    "Order",
]
