"""API routes module."""

from category_engine.api.routes.categories import router as categories_router
from category_engine.api.routes.health import router as health_router

__all__ = ["categories_router", "health_router"]
