"""
Repository interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the read contracts the feed pipeline depends on; the
relational store behind them is owned elsewhere.
"""
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from trustfeed.models.schemas import (
    DiscoveryRequest,
    FoodList,
    InteractionStatus,
    RatingRecord,
    Recommendation,
    Reshare,
    TasteAlignmentResult,
    ToggleResult,
)


@runtime_checkable
class SocialGraphRepository(Protocol):
    """
    Interface for the follow graph.
    Production: Supabase `social_connections` table.
    Testing: In-memory implementation.
    """

    async def get_following_ids(self, user_id: str) -> List[str]:
        """
        Fetch ids of users the given user actively follows.

        Args:
            user_id: Follower identifier

        Returns:
            List of followed user ids (may be empty)
        """
        ...


@runtime_checkable
class ContentRepository(Protocol):
    """
    Interface for the four content tables.
    Every listing is ordered newest first and bounded by `limit`.
    """

    async def get_recommendations_by_authors(
        self, author_ids: Sequence[str], limit: int
    ) -> List[Recommendation]:
        """Recommendations written by any of the given authors."""
        ...

    async def get_reshares_by_users(
        self, user_ids: Sequence[str], limit: int
    ) -> List[Reshare]:
        """Reshares made by any of the given users, with the wrapped recommendation."""
        ...

    async def get_lists_by_authors(
        self, author_ids: Sequence[str], limit: int, public_only: bool = True
    ) -> List[FoodList]:
        """Lists created by the given authors, with their restaurants."""
        ...

    async def get_requests_by_creators(
        self, creator_ids: Sequence[str], statuses: Sequence[str], limit: int
    ) -> List[DiscoveryRequest]:
        """Discovery requests by the given creators in one of the statuses."""
        ...

    async def get_recommendations_by_cuisines(
        self,
        cuisines: Sequence[str],
        exclude_author_ids: Sequence[str],
        min_rating: float,
        limit: int,
    ) -> List[Recommendation]:
        """Well-rated recommendations in the cuisines, by authors not excluded."""
        ...

    async def get_recent_recommendations(
        self, since: datetime, min_rating: float, limit: int
    ) -> List[Recommendation]:
        """Recommendations created at or after `since` rated at least `min_rating`."""
        ...


@runtime_checkable
class TasteDataRepository(Protocol):
    """
    Interface for the inputs of taste alignment.
    Returns plain records; all aggregation happens in pure functions.
    """

    async def get_rating_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[RatingRecord]:
        """
        Fetch the user's rated recommendations with cuisine and dining context.

        Args:
            user_id: Author identifier
            limit: Optional cap, newest first

        Returns:
            Rating records (may be empty)
        """
        ...

    async def get_cuisine_preferences(self, user_id: str) -> Dict[str, float]:
        """Stored cuisine -> preference weight profile (may be empty)."""
        ...


@runtime_checkable
class TasteAlignmentCacheRepository(Protocol):
    """
    Interface for persisted taste alignment results.
    Writes are upserts keyed by (user_id, compared_user_id).
    """

    async def get(
        self, user_id: str, compared_user_id: str
    ) -> Optional[TasteAlignmentResult]:
        """Cached result for the ordered pair, if any."""
        ...

    async def upsert(self, result: TasteAlignmentResult) -> None:
        """Insert or replace the result for its ordered pair."""
        ...

    async def delete_for_user(self, user_id: str) -> int:
        """Delete every pair the user appears in; return rows removed."""
        ...


@runtime_checkable
class InteractionRepository(Protocol):
    """
    Interface for likes, bookmarks and reshare membership.
    """

    async def get_interaction_status(self, user_id: str) -> InteractionStatus:
        """Recommendation ids the user has liked, saved and reshared."""
        ...

    async def toggle_like(self, user_id: str, recommendation_id: str) -> ToggleResult:
        """Flip like membership and adjust the recommendation's like counter."""
        ...

    async def toggle_save(self, user_id: str, recommendation_id: str) -> ToggleResult:
        """Flip bookmark membership and adjust the recommendation's save counter."""
        ...
