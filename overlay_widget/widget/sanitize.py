from __future__ import annotations

import re
from typing import Optional

NETWORK = "NETWORK"
PARSE = "PARSE"
REQUEST_FAILED = "REQUEST_FAILED"
BAD_RESPONSE = "BAD_RESPONSE"
UNKNOWN = "UNKNOWN"

CLIENT_CODES = frozenset({NETWORK, PARSE, REQUEST_FAILED, BAD_RESPONSE})

KNOWN_REMOTE_CODES = frozenset(
    {
        "NO_ITEMS",
        "OFFER_NOT_FOUND",
        "QTY_LIMIT",
        "CURRENCY_MISMATCH",
        "INVALID_MERCHANT",
        "UNAUTHORISED",
    }
)

KNOWN_CODES = CLIENT_CODES | KNOWN_REMOTE_CODES

_UNSAFE = re.compile(r"[^A-Z0-9_]")


def sanitize_error_code(raw: Optional[object]) -> str:
    """Reduce an untrusted error identifier to a bounded, markup-safe token."""
    if raw is None:
        return UNKNOWN
    text = str(raw)
    if text in KNOWN_CODES:
        return text
    cleaned = _UNSAFE.sub("_", text.upper())
    return cleaned or UNKNOWN


__all__ = [
    "NETWORK",
    "PARSE",
    "REQUEST_FAILED",
    "BAD_RESPONSE",
    "UNKNOWN",
    "CLIENT_CODES",
    "KNOWN_REMOTE_CODES",
    "KNOWN_CODES",
    "sanitize_error_code",
]
