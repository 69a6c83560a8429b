"""Render contract between the view controller and whatever presents it.

The controller hands a :class:`RenderFrame` to the renderer after every
transition. How a frame is drawn is up to the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ..schemas import DEFAULT_CURRENCY

LOADING_OFFERS = "Loading offers..."
SUBMITTING_ORDER = "Submitting order..."


class View(str, Enum):
    CATALOG = "catalog"
    CHECKOUT = "checkout"
    CONFIRM = "confirm"
    ERROR = "error"


@dataclass(frozen=True)
class RenderFrame:
    view: View
    visible: bool
    loading: bool = False
    loading_message: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


Renderer = Callable[[RenderFrame], None]


def format_money(currency: Optional[str], minor: int) -> str:
    code = (currency or DEFAULT_CURRENCY).upper()
    return f"{code} {minor / 100:.2f}"


__all__ = [
    "LOADING_OFFERS",
    "SUBMITTING_ORDER",
    "View",
    "RenderFrame",
    "Renderer",
    "format_money",
]
