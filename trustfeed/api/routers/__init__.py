"""API routers package."""
from .feed import router as feed_router
from .health import router as health_router
from .taste import router as taste_router

__all__ = ["feed_router", "health_router", "taste_router"]
