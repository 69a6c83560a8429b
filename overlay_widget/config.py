from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

PACKAGE_DIR = Path(__file__).parent
DEFAULT_STATIC_DIR = PACKAGE_DIR / "static"


def _load_env() -> None:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


_load_env()


def _get_env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Settings:
    host: str = field(default_factory=lambda: _get_env("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_int("PORT", 3000))
    reload: bool = field(default_factory=lambda: _get_bool("RELOAD", False))

    overlay_key: str = field(default_factory=lambda: _get_env("WIDGET_OVERLAY_KEY", "") or "")
    upstream_bff_base: str = field(default_factory=lambda: (_get_env("UPSTREAM_BFF_BASE", "") or "").rstrip("/"))
    upstream_timeout_seconds: float = field(default_factory=lambda: _get_float("UPSTREAM_TIMEOUT_SECONDS", 15.0))
    static_dir: str = field(default_factory=lambda: _get_env("STATIC_DIR", str(DEFAULT_STATIC_DIR)))
    max_body_bytes: int = field(default_factory=lambda: _get_int("MAX_BODY_BYTES", 1_000_000))

    request_timeout_seconds: float = field(
        default_factory=lambda: _get_float("OVERLAY_REQUEST_TIMEOUT_SECONDS", 30.0)
    )
    health_timeout_seconds: float = field(default_factory=lambda: _get_float("OVERLAY_HEALTH_TIMEOUT_SECONDS", 8.0))
    health_delay_seconds: float = field(default_factory=lambda: _get_float("OVERLAY_HEALTH_DELAY_SECONDS", 0.2))

    log_level: str = field(default_factory=lambda: (_get_env("LOG_LEVEL", "INFO") or "INFO").upper())
    log_dir: str | None = field(default_factory=lambda: _get_env("LOG_DIR"))

    @property
    def key_required(self) -> bool:
        return bool(self.overlay_key)

    @property
    def has_upstream(self) -> bool:
        return bool(self.upstream_bff_base)


_settings: Settings | None = None
_runtime_overrides: dict[str, Any] = {}


def _apply_runtime_overrides(settings: Settings) -> None:
    if not _runtime_overrides:
        return
    for key, value in _runtime_overrides.items():
        if value is None:
            continue
        if hasattr(settings, key):
            setattr(settings, key, value)


def update_runtime_overrides(overrides: dict[str, Any]) -> None:
    """Override settings for this process, e.g. from CLI flags."""
    if not overrides:
        return
    for key, value in overrides.items():
        if value is None:
            continue
        _runtime_overrides[key] = value
    if _settings is not None:
        _apply_runtime_overrides(_settings)


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    _apply_runtime_overrides(_settings)
    return _settings


def refresh_settings() -> Settings:
    """Rebuild settings from environment variables."""
    global _settings
    _runtime_overrides.clear()
    _settings = Settings()
    return _settings


__all__ = [
    "DEFAULT_STATIC_DIR",
    "Settings",
    "get_settings",
    "refresh_settings",
    "update_runtime_overrides",
]
