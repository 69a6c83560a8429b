"""Structured JSON logging for the overlay relay and widget core.

Records are emitted as single-line JSON so relay logs can be shipped as-is.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import TrackedError


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Merge extra structured data
        if hasattr(record, "data"):
            entry["data"] = record.data  # type: ignore[attr-defined]
        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            entry["error"] = str(exc)
            if isinstance(exc, TrackedError):
                entry["error_type"] = exc.error_type
                entry["trace_id"] = exc.trace_id
                code = getattr(exc, "code", None)
                if code:
                    entry["code"] = code
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    log_dir: Path | None = None,
    level: int | str = logging.INFO,
) -> logging.Logger:
    """Configure structured logging for the ``overlay_widget`` logger tree.

    Args:
        log_dir: Directory for a ``relay.jsonl`` file. If None, logs to stderr only.
        level: Logging level, as a number or a name such as ``"DEBUG"``.

    Returns:
        The root 'overlay_widget' logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("overlay_widget")
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return logger

    fmt = JSONFormatter()

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "relay.jsonl", encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    # Stderr handler (only warnings+)
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    sh.setLevel(logging.WARNING)
    logger.addHandler(sh)

    return logger


__all__ = ["JSONFormatter", "setup_logging"]
