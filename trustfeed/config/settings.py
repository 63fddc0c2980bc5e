"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Trust Feed API"
    APP_VERSION: str = "2.0.0"
    DEBUG: bool = False

    # Data backend: "memory" (seeded demo store) or "supabase"
    DATA_BACKEND: str = "memory"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Media
    IPFS_GATEWAY: str = "https://gateway.pinata.cloud/ipfs/"

    # Feed composition
    FEED_PRIMARY_RATIO: float = 0.75  # Share of own + following content
    FEED_MAX_ITEMS: int = 40

    # Per-source query limits
    OWN_RECOMMENDATIONS_LIMIT: int = 10
    OWN_LISTS_LIMIT: int = 5
    OWN_REQUESTS_LIMIT: int = 5
    OWN_RESHARES_LIMIT: int = 5
    FOLLOWING_RECOMMENDATIONS_LIMIT: int = 20
    FOLLOWING_RESHARES_LIMIT: int = 15
    FOLLOWING_REQUESTS_LIMIT: int = 10
    FOLLOWING_LISTS_LIMIT: int = 5
    TASTE_SIMILARITY_LIMIT: int = 15
    TRENDING_LIMIT: int = 10
    RATING_HISTORY_LIMIT: int = 50

    # Source filters
    TRENDING_WINDOW_HOURS: int = 24
    TRENDING_MIN_RATING: float = 8.0
    TASTE_MIN_RATING: float = 7.0
    TOP_CUISINES: int = 5

    # Taste alignment
    TASTE_ALIGNMENT_CACHE_DAYS: int = 7
    MIN_TASTE_ALIGNMENT_DATAPOINTS: int = 3

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()
