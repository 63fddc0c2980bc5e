"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache
from typing import Optional, Union

from fastapi import Header

from trustfeed.config import get_settings
from trustfeed.core.exceptions import AuthenticationError, ValidationError
from trustfeed.models.interfaces import (
    ContentRepository,
    InteractionRepository,
    SocialGraphRepository,
    TasteAlignmentCacheRepository,
    TasteDataRepository,
)
from trustfeed.repositories.memory import (
    InMemoryContentRepository,
    InMemoryDatabase,
    InMemoryInteractionRepository,
    InMemorySocialGraphRepository,
    InMemoryTasteAlignmentCache,
    InMemoryTasteDataRepository,
)
from trustfeed.repositories.supabase import (
    SupabaseContentRepository,
    SupabaseDatabase,
    SupabaseInteractionRepository,
    SupabaseSocialGraphRepository,
    SupabaseTasteAlignmentCache,
    SupabaseTasteDataRepository,
)
from trustfeed.services.collector import CandidateCollector, SourceLimits
from trustfeed.services.engagement import EngagementService
from trustfeed.services.feed import FeedService
from trustfeed.services.formatter import FeedFormatter
from trustfeed.services.ranking import RankingEngine
from trustfeed.services.taste_alignment import TasteAlignmentConfig, TasteAlignmentEngine
from trustfeed.services.trust import TrustScorer

Database = Union[InMemoryDatabase, SupabaseDatabase]


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_database() -> Database:
    """Get singleton data store for the configured backend."""
    settings = get_settings()
    if settings.DATA_BACKEND == "memory":
        return InMemoryDatabase(seed=True)
    if settings.DATA_BACKEND == "supabase":
        return SupabaseDatabase(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    raise ValidationError(
        f"Unknown data backend: {settings.DATA_BACKEND}",
        details={"allowed": ["memory", "supabase"]},
    )


def _is_memory(db: Database) -> bool:
    return isinstance(db, InMemoryDatabase)


@lru_cache()
def get_social_graph_repository() -> SocialGraphRepository:
    """Get singleton follow-graph repository."""
    db = get_database()
    return InMemorySocialGraphRepository(db) if _is_memory(db) else SupabaseSocialGraphRepository(db)


@lru_cache()
def get_content_repository() -> ContentRepository:
    """Get singleton content repository."""
    db = get_database()
    return InMemoryContentRepository(db) if _is_memory(db) else SupabaseContentRepository(db)


@lru_cache()
def get_taste_data_repository() -> TasteDataRepository:
    """Get singleton taste data repository."""
    db = get_database()
    return InMemoryTasteDataRepository(db) if _is_memory(db) else SupabaseTasteDataRepository(db)


@lru_cache()
def get_taste_alignment_cache() -> TasteAlignmentCacheRepository:
    """Get singleton taste alignment cache repository."""
    db = get_database()
    return InMemoryTasteAlignmentCache(db) if _is_memory(db) else SupabaseTasteAlignmentCache(db)


@lru_cache()
def get_interaction_repository() -> InteractionRepository:
    """Get singleton interaction repository."""
    db = get_database()
    return InMemoryInteractionRepository(db) if _is_memory(db) else SupabaseInteractionRepository(db)


@lru_cache()
def get_ranking_engine() -> RankingEngine:
    """Get singleton ranking engine."""
    settings = get_settings()
    return RankingEngine(
        primary_ratio=settings.FEED_PRIMARY_RATIO,
        max_items=settings.FEED_MAX_ITEMS,
    )


@lru_cache()
def get_taste_alignment_engine() -> TasteAlignmentEngine:
    """Get singleton taste alignment engine."""
    return TasteAlignmentEngine(
        taste_repository=get_taste_data_repository(),
        cache_repository=get_taste_alignment_cache(),
        config=TasteAlignmentConfig.from_settings(get_settings()),
    )


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_feed_service() -> FeedService:
    """
    Get feed service with all dependencies wired.
    This is the main entry point for the feed endpoint.
    """
    settings = get_settings()
    return FeedService(
        collector=CandidateCollector(
            content_repo=get_content_repository(),
            social_repo=get_social_graph_repository(),
            taste_repo=get_taste_data_repository(),
            limits=SourceLimits.from_settings(settings),
        ),
        trust_scorer=TrustScorer(),
        ranking_engine=get_ranking_engine(),
        formatter=FeedFormatter(ipfs_gateway=settings.IPFS_GATEWAY),
        interaction_repo=get_interaction_repository(),
    )


def get_engagement_service() -> EngagementService:
    """Get engagement toggle service."""
    return EngagementService(get_interaction_repository())


def get_current_user(
    x_user_id: Optional[str] = Header(
        default=None,
        alias="X-User-ID",
        description="Authenticated user identifier set by the upstream auth layer",
    ),
) -> str:
    """
    Resolve the caller's identity.

    Raises:
        AuthenticationError: If no identity was supplied
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError()
    return x_user_id.strip()


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_database.cache_clear()
    get_social_graph_repository.cache_clear()
    get_content_repository.cache_clear()
    get_taste_data_repository.cache_clear()
    get_taste_alignment_cache.cache_clear()
    get_interaction_repository.cache_clear()
    get_ranking_engine.cache_clear()
    get_taste_alignment_engine.cache_clear()
