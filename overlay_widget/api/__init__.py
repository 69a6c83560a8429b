from .bff import router as bff_router
from .static import router as static_router

__all__ = [
    "bff_router",
    "static_router",
]
