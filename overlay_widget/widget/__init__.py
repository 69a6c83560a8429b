from .catalog_cache import CatalogCache
from .client import NetworkClient
from .controller import ViewController
from .embed import EmbedConfig
from .health import HealthMonitor, HealthState, HealthStatus
from .registry import DEFAULT_MOUNT_ID, OverlayWidget, WidgetRegistry, widget_registry
from .render import RenderFrame, Renderer, View, format_money
from .sanitize import sanitize_error_code
from .selection import SelectionModel
from .validator import CheckoutForm, validate_checkout

__all__ = [
    "CatalogCache",
    "NetworkClient",
    "ViewController",
    "EmbedConfig",
    "HealthMonitor",
    "HealthState",
    "HealthStatus",
    "DEFAULT_MOUNT_ID",
    "OverlayWidget",
    "WidgetRegistry",
    "widget_registry",
    "RenderFrame",
    "Renderer",
    "View",
    "format_money",
    "sanitize_error_code",
    "SelectionModel",
    "CheckoutForm",
    "validate_checkout",
]
