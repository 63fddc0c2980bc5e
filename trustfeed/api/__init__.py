"""API package - FastAPI routes and dependencies."""
from .dependencies import get_feed_service, get_taste_alignment_engine
from .routers import feed_router, health_router, taste_router

__all__ = [
    "feed_router",
    "get_feed_service",
    "get_taste_alignment_engine",
    "health_router",
    "taste_router",
]
