"""
Health check router for observability.
"""
from fastapi import APIRouter

from trustfeed.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check() -> dict:
    """
    Readiness check for Kubernetes.
    Reports the data backend and feed composition settings.
    """
    settings = get_settings()

    return {
        "status": "ready",
        "data_backend": settings.DATA_BACKEND,
        "feed": {
            "primary_ratio": settings.FEED_PRIMARY_RATIO,
            "max_items": settings.FEED_MAX_ITEMS,
        },
        "taste_alignment": {
            "cache_days": settings.TASTE_ALIGNMENT_CACHE_DAYS,
            "min_shared_restaurants": settings.MIN_TASTE_ALIGNMENT_DATAPOINTS,
        },
    }
