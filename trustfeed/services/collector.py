"""
Candidate collector.
Queries the independent content sources concurrently, tags every item with
the source that surfaced it and deduplicates the pool.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel

from trustfeed.config.settings import Settings
from trustfeed.core.exceptions import FeedGenerationError
from trustfeed.models.interfaces import (
    ContentRepository,
    SocialGraphRepository,
    TasteDataRepository,
)
from trustfeed.models.schemas import (
    ACTIVE_REQUEST_STATUSES,
    CandidatePool,
    FeedCandidate,
    Provenance,
    RatingRecord,
)
from trustfeed.services import taste_data

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = [status.value for status in ACTIVE_REQUEST_STATUSES]


class SourceLimits(BaseModel):
    """Per-source result bounds and filters."""

    own_recommendations: int = 10
    own_lists: int = 5
    own_requests: int = 5
    own_reshares: int = 5
    following_recommendations: int = 20
    following_reshares: int = 15
    following_requests: int = 10
    following_lists: int = 5
    taste_similarity: int = 15
    trending: int = 10
    rating_history: int = 50
    trending_window_hours: int = 24
    trending_min_rating: float = 8.0
    taste_min_rating: float = 7.0
    top_cuisines: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "SourceLimits":
        return cls(
            own_recommendations=settings.OWN_RECOMMENDATIONS_LIMIT,
            own_lists=settings.OWN_LISTS_LIMIT,
            own_requests=settings.OWN_REQUESTS_LIMIT,
            own_reshares=settings.OWN_RESHARES_LIMIT,
            following_recommendations=settings.FOLLOWING_RECOMMENDATIONS_LIMIT,
            following_reshares=settings.FOLLOWING_RESHARES_LIMIT,
            following_requests=settings.FOLLOWING_REQUESTS_LIMIT,
            following_lists=settings.FOLLOWING_LISTS_LIMIT,
            taste_similarity=settings.TASTE_SIMILARITY_LIMIT,
            trending=settings.TRENDING_LIMIT,
            rating_history=settings.RATING_HISTORY_LIMIT,
            trending_window_hours=settings.TRENDING_WINDOW_HOURS,
            trending_min_rating=settings.TRENDING_MIN_RATING,
            taste_min_rating=settings.TASTE_MIN_RATING,
            top_cuisines=settings.TOP_CUISINES,
        )


class SourceQuery(NamedTuple):
    """One guarded source fetch."""

    name: str
    provenance: Provenance
    fetch: Callable[[], Awaitable[Sequence]]


class CandidateCollector:
    """
    Gathers feed candidates for a user from every content source.

    Responsibilities:
    - Load the social graph and taste profile (fatal on failure)
    - Run source queries concurrently, tolerating individual failures
    - Deduplicate in a fixed source order so provenance is deterministic
    """

    def __init__(
        self,
        content_repo: ContentRepository,
        social_repo: SocialGraphRepository,
        taste_repo: TasteDataRepository,
        limits: Optional[SourceLimits] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._content_repo = content_repo
        self._social_repo = social_repo
        self._taste_repo = taste_repo
        self._limits = limits or SourceLimits()
        self._clock = clock

    async def collect(self, user_id: str) -> CandidatePool:
        """
        Collect the deduplicated candidate pool for a user.

        Raises:
            FeedGenerationError: If the follow graph or rating history
                cannot be loaded
        """
        following_ids, history = await self._load_profile(user_id)

        queries = self._build_queries(user_id, following_ids, history)
        outcomes = await asyncio.gather(
            *(self._run_source(user_id, query) for query in queries)
        )

        pool = CandidatePool()
        for query, items in zip(queries, outcomes):
            if items is None:
                pool.failed_sources.append(query.name)
                continue
            for item in items:
                key = item.dedup_key
                if key in pool.provenance:
                    continue
                pool.provenance[key] = query.provenance
                pool.candidates.append(FeedCandidate(item=item, provenance=query.provenance))

        logger.info(
            f"Collected {len(pool.candidates)} candidates from {len(queries)} queries "
            f"({len(pool.failed_sources)} failed)",
            extra={"user_id": user_id},
        )
        return pool

    async def _load_profile(self, user_id: str) -> Tuple[List[str], List[RatingRecord]]:
        try:
            return await asyncio.gather(
                self._social_repo.get_following_ids(user_id),
                self._taste_repo.get_rating_history(user_id, self._limits.rating_history),
            )
        except Exception as e:
            logger.error(
                f"Failed to load social graph or taste profile: {e}",
                extra={"user_id": user_id},
            )
            raise FeedGenerationError("social graph or taste profile unavailable") from e

    async def _run_source(self, user_id: str, query: SourceQuery) -> Optional[Sequence]:
        """Run one source; failures are logged once and yield None."""
        try:
            return await query.fetch()
        except Exception as e:
            logger.warning(
                f"Feed source failed: {e}",
                extra={"user_id": user_id, "source": query.name},
            )
            return None

    def _build_queries(
        self,
        user_id: str,
        following_ids: List[str],
        history: List[RatingRecord],
    ) -> List[SourceQuery]:
        """Source queries in dedup priority order."""
        repo = self._content_repo
        limits = self._limits
        own = [user_id]

        queries = [
            SourceQuery(
                "own_recommendations",
                Provenance.OWN,
                lambda: repo.get_recommendations_by_authors(own, limits.own_recommendations),
            ),
            SourceQuery(
                "own_lists",
                Provenance.OWN,
                lambda: repo.get_lists_by_authors(own, limits.own_lists, public_only=False),
            ),
            SourceQuery(
                "own_requests",
                Provenance.OWN,
                lambda: repo.get_requests_by_creators(own, ACTIVE_STATUSES, limits.own_requests),
            ),
            SourceQuery(
                "own_reshares",
                Provenance.OWN,
                lambda: repo.get_reshares_by_users(own, limits.own_reshares),
            ),
        ]

        if following_ids:
            queries += [
                SourceQuery(
                    "following_recommendations",
                    Provenance.FOLLOWING,
                    lambda: repo.get_recommendations_by_authors(
                        following_ids, limits.following_recommendations
                    ),
                ),
                SourceQuery(
                    "following_reshares",
                    Provenance.FOLLOWING,
                    lambda: repo.get_reshares_by_users(following_ids, limits.following_reshares),
                ),
                SourceQuery(
                    "following_requests",
                    Provenance.FOLLOWING,
                    lambda: repo.get_requests_by_creators(
                        following_ids, ACTIVE_STATUSES, limits.following_requests
                    ),
                ),
            ]

        cuisines = taste_data.top_cuisines(
            history, limits.taste_min_rating, limits.top_cuisines
        )
        if cuisines:
            excluded = own + list(following_ids)
            queries.append(
                SourceQuery(
                    "taste_similarity",
                    Provenance.TASTE_SIMILARITY,
                    lambda: repo.get_recommendations_by_cuisines(
                        cuisines, excluded, limits.taste_min_rating, limits.taste_similarity
                    ),
                )
            )

        since = self._clock() - timedelta(hours=limits.trending_window_hours)
        queries.append(
            SourceQuery(
                "trending",
                Provenance.TRENDING,
                lambda: repo.get_recent_recommendations(
                    since, limits.trending_min_rating, limits.trending
                ),
            )
        )

        if following_ids:
            queries.append(
                SourceQuery(
                    "following_lists",
                    Provenance.FOLLOWING,
                    lambda: repo.get_lists_by_authors(
                        following_ids, limits.following_lists, public_only=True
                    ),
                )
            )

        return queries
