from .catalog import DEFAULT_CURRENCY, Catalog, Offer, WireModel
from .order import Buyer, GiftCard, Order, PurchaseItem, PurchaseRequest, Recipient

__all__ = [
    "DEFAULT_CURRENCY",
    "WireModel",
    "Offer",
    "Catalog",
    "Buyer",
    "Recipient",
    "PurchaseItem",
    "PurchaseRequest",
    "GiftCard",
    "Order",
]
