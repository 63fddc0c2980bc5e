"""
Supabase repository implementations.
supabase-py is blocking, so every query executes in a worker thread.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client, create_client

from trustfeed.core.exceptions import DataStoreError, NotFoundError
from trustfeed.models.schemas import (
    AuthorProfile,
    CorrelationData,
    DiscoveryRequest,
    Engagement,
    FoodList,
    InteractionStatus,
    RatingRecord,
    Recommendation,
    Reshare,
    Restaurant,
    RestaurantAspects,
    TasteAlignmentResult,
    ToggleResult,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

PROFILE_COLUMNS = "id, username, display_name, avatar_url, reputation_score, trust_score"
RESTAURANT_COLUMNS = "id, name, cuisine_type, address, formatted_address, city"
RECOMMENDATION_SELECT = (
    "*, "
    f"author:author_id({PROFILE_COLUMNS}), "
    f"restaurant:restaurant_id({RESTAURANT_COLUMNS}), "
    "restaurant_aspects(ambiance, service, value_for_money, noise_level)"
)
# Inner join so the cuisine filter drops parent rows
RECOMMENDATION_BY_CUISINE_SELECT = (
    "*, "
    f"author:author_id({PROFILE_COLUMNS}), "
    f"restaurant:restaurant_id!inner({RESTAURANT_COLUMNS}), "
    "restaurant_aspects(ambiance, service, value_for_money, noise_level)"
)
RESHARE_SELECT = (
    "id, user_id, recommendation_id, comment, created_at, "
    f"resharer:user_id({PROFILE_COLUMNS}), "
    f"recommendation:recommendation_id({RECOMMENDATION_SELECT})"
)
LIST_SELECT = (
    "id, title, description, author_id, category, city, tags, best_for, "
    "likes_count, bookmarks_count, created_at, is_public, "
    "cover_image_url, cover_image_source, "
    f"author:author_id({PROFILE_COLUMNS})"
)
REQUEST_SELECT = (
    "id, title, description, location, cuisine_type, occasion, budget_range, "
    "dietary_restrictions, bounty_amount, status, response_count, view_count, "
    "created_at, expires_at, "
    f"author:creator_id({PROFILE_COLUMNS})"
)
# Not a column of `taste_alignments`
UNSTORED_ALIGNMENT_FIELDS = {"shared_preferences"}


class SupabaseDatabase:
    """Owns the supabase-py client and runs queries off the event loop."""

    def __init__(self, url: str, key: str) -> None:
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        self.client: Client = create_client(url, key)

    def table(self, name: str):
        return self.client.table(name)

    async def execute(self, operation: str, query) -> List[Row]:
        """
        Execute a built query in a worker thread.

        Raises:
            DataStoreError: If the request fails
        """
        try:
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise DataStoreError(operation, str(e)) from e
        return response.data or []


# =============================================================================
# Row Mapping
# =============================================================================


def _one(value: Any) -> Optional[Row]:
    """Embedded relations arrive as an object or a one-element list."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _trust(value: Any) -> Optional[float]:
    if value is None:
        return None
    return max(0.0, min(10.0, float(value)))


def to_profile(row: Optional[Row], fallback_id: str = "") -> AuthorProfile:
    if not row:
        return AuthorProfile(id=fallback_id)
    trust = row.get("trust_score")
    if trust is None:
        trust = row.get("reputation_score")
    return AuthorProfile(
        id=str(row.get("id") or fallback_id),
        username=row.get("username"),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        trust_score=_trust(trust),
        reputation_score=row.get("reputation_score"),
    )


def to_restaurant(row: Optional[Row]) -> Optional[Restaurant]:
    if not row:
        return None
    return Restaurant(
        id=str(row["id"]),
        name=row.get("name") or "Unknown Restaurant",
        cuisine_type=row.get("cuisine_type"),
        address=row.get("address"),
        formatted_address=row.get("formatted_address"),
        city=row.get("city"),
        image_url=row.get("image_url"),
        average_rating=row.get("average_rating") or 0.0,
    )


def photo_refs(raw: Any) -> List[str]:
    """Normalize stored photo entries to URL or IPFS hash strings."""
    refs: List[str] = []
    for photo in raw or []:
        if isinstance(photo, str):
            refs.append(photo)
        elif isinstance(photo, dict):
            ref = photo.get("url") or photo.get("ipfsHash") or photo.get("ipfs_hash") or photo.get("cid")
            if ref:
                refs.append(ref)
    return refs


def to_recommendation(row: Row) -> Recommendation:
    aspects = _one(row.get("restaurant_aspects"))
    return Recommendation(
        id=str(row["id"]),
        author=to_profile(_one(row.get("author")), str(row.get("author_id") or "")),
        created_at=row["created_at"],
        engagement=Engagement(
            likes=row.get("likes_count") or 0,
            saves=row.get("saves_count") or 0,
            reshares=row.get("reshares_count") or 0,
            comments=row.get("comments_count") or 0,
        ),
        title=row.get("title") or "",
        content=row.get("content") or row.get("description") or "",
        overall_rating=row.get("overall_rating") or 0.0,
        restaurant=to_restaurant(_one(row.get("restaurant"))),
        context_tags=row.get("context_tags") or [],
        photos=photo_refs(row.get("photos")),
        image_url=row.get("image_url"),
        aspects=RestaurantAspects(**aspects) if aspects else None,
        is_edited=bool(row.get("is_edited")),
        edited_at=row.get("edited_at"),
    )


def to_reshare(row: Row) -> Optional[Reshare]:
    recommendation = _one(row.get("recommendation"))
    if not recommendation:
        return None
    return Reshare(
        id=str(row["id"]),
        resharer=to_profile(_one(row.get("resharer")), str(row.get("user_id") or "")),
        reshared_at=row["created_at"],
        comment=row.get("comment"),
        recommendation=to_recommendation(recommendation),
    )


def to_food_list(row: Row, restaurants: List[Restaurant]) -> FoodList:
    return FoodList(
        id=str(row["id"]),
        author=to_profile(_one(row.get("author")), str(row.get("author_id") or "")),
        created_at=row["created_at"],
        engagement=Engagement(
            likes=row.get("likes_count") or 0,
            saves=row.get("bookmarks_count") or 0,
        ),
        title=row.get("title") or "",
        description=row.get("description") or "",
        category=row.get("category") or "",
        city=row.get("city") or "",
        tags=row.get("tags") or [],
        best_for=row.get("best_for") or "",
        cover_image_url=row.get("cover_image_url"),
        cover_image_source=row.get("cover_image_source"),
        is_public=row.get("is_public", True),
        restaurants=restaurants,
    )


def to_request(row: Row) -> DiscoveryRequest:
    return DiscoveryRequest(
        id=str(row["id"]),
        author=to_profile(_one(row.get("author")), str(row.get("creator_id") or "")),
        created_at=row["created_at"],
        title=row.get("title") or "",
        description=row.get("description") or "",
        location=row.get("location"),
        cuisine_type=row.get("cuisine_type"),
        occasion=row.get("occasion"),
        budget_range=row.get("budget_range"),
        dietary_restrictions=row.get("dietary_restrictions") or [],
        bounty_amount=row.get("bounty_amount") or 0.0,
        status=row.get("status") or "open",
        response_count=row.get("response_count") or 0,
        view_count=row.get("view_count") or 0,
        expires_at=row.get("expires_at"),
    )


def to_taste_alignment(row: Row) -> TasteAlignmentResult:
    """Cached rows store no shared preferences; null arrays read as empty."""
    return TasteAlignmentResult(
        user_id=str(row["user_id"]),
        compared_user_id=str(row["compared_user_id"]),
        similarity_score=row.get("similarity_score") or 0.0,
        confidence_level=row.get("confidence_level") or 0.0,
        divergent_preferences=row.get("divergent_preferences") or [],
        correlation_data=CorrelationData(**(row.get("correlation_data") or {})),
        shared_restaurants=row.get("shared_restaurants") or 0,
        shared_cuisines=row.get("shared_cuisines") or [],
        last_calculated=row["last_calculated"],
        calculation_version=row.get("calculation_version") or "",
    )


# =============================================================================
# Repositories
# =============================================================================


class SupabaseSocialGraphRepository:
    """SocialGraphRepository over `social_connections`."""

    def __init__(self, db: SupabaseDatabase) -> None:
        self._db = db

    async def get_following_ids(self, user_id: str) -> List[str]:
        rows = await self._db.execute(
            "get_following_ids",
            self._db.table("social_connections")
            .select("following_id")
            .eq("follower_id", user_id)
            .eq("is_active", True),
        )
        return [str(row["following_id"]) for row in rows]


class SupabaseContentRepository:
    """ContentRepository over the recommendation, list and request tables."""

    def __init__(self, db: SupabaseDatabase) -> None:
        self._db = db

    async def get_recommendations_by_authors(
        self, author_ids: Sequence[str], limit: int
    ) -> List[Recommendation]:
        rows = await self._db.execute(
            "get_recommendations_by_authors",
            self._db.table("recommendations")
            .select(RECOMMENDATION_SELECT)
            .in_("author_id", list(author_ids))
            .order("created_at", desc=True)
            .limit(limit),
        )
        return [to_recommendation(row) for row in rows]

    async def get_reshares_by_users(
        self, user_ids: Sequence[str], limit: int
    ) -> List[Reshare]:
        rows = await self._db.execute(
            "get_reshares_by_users",
            self._db.table("recommendation_reshares")
            .select(RESHARE_SELECT)
            .in_("user_id", list(user_ids))
            .order("created_at", desc=True)
            .limit(limit),
        )
        reshares = [to_reshare(row) for row in rows]
        return [reshare for reshare in reshares if reshare is not None]

    async def get_lists_by_authors(
        self, author_ids: Sequence[str], limit: int, public_only: bool = True
    ) -> List[FoodList]:
        query = (
            self._db.table("food_guides")
            .select(LIST_SELECT)
            .in_("author_id", list(author_ids))
        )
        if public_only:
            query = query.eq("is_public", True)
        rows = await self._db.execute(
            "get_lists_by_authors",
            query.order("created_at", desc=True).limit(limit),
        )
        if not rows:
            return []

        items = await self._db.execute(
            "get_list_restaurants",
            self._db.table("guide_items")
            .select(f"list_id, restaurant:restaurant_id({RESTAURANT_COLUMNS})")
            .in_("list_id", [row["id"] for row in rows]),
        )
        by_list: Dict[str, List[Restaurant]] = {}
        for item in items:
            restaurant = to_restaurant(_one(item.get("restaurant")))
            if restaurant is not None:
                by_list.setdefault(str(item["list_id"]), []).append(restaurant)

        return [to_food_list(row, by_list.get(str(row["id"]), [])) for row in rows]

    async def get_requests_by_creators(
        self, creator_ids: Sequence[str], statuses: Sequence[str], limit: int
    ) -> List[DiscoveryRequest]:
        rows = await self._db.execute(
            "get_requests_by_creators",
            self._db.table("discovery_requests")
            .select(REQUEST_SELECT)
            .in_("creator_id", list(creator_ids))
            .in_("status", list(statuses))
            .order("created_at", desc=True)
            .limit(limit),
        )
        return [to_request(row) for row in rows]

    async def get_recommendations_by_cuisines(
        self,
        cuisines: Sequence[str],
        exclude_author_ids: Sequence[str],
        min_rating: float,
        limit: int,
    ) -> List[Recommendation]:
        query = (
            self._db.table("recommendations")
            .select(RECOMMENDATION_BY_CUISINE_SELECT)
            .in_("restaurant.cuisine_type", list(cuisines))
            .gte("overall_rating", min_rating)
        )
        if exclude_author_ids:
            query = query.not_.in_("author_id", list(exclude_author_ids))
        rows = await self._db.execute(
            "get_recommendations_by_cuisines",
            query.order("created_at", desc=True).limit(limit),
        )
        return [to_recommendation(row) for row in rows]

    async def get_recent_recommendations(
        self, since: datetime, min_rating: float, limit: int
    ) -> List[Recommendation]:
        rows = await self._db.execute(
            "get_recent_recommendations",
            self._db.table("recommendations")
            .select(RECOMMENDATION_SELECT)
            .gte("created_at", since.isoformat())
            .gte("overall_rating", min_rating)
            .order("created_at", desc=True)
            .limit(limit),
        )
        return [to_recommendation(row) for row in rows]


class SupabaseTasteDataRepository:
    """TasteDataRepository over `recommendations`, `contextual_factors` and `user_patterns`."""

    def __init__(self, db: SupabaseDatabase) -> None:
        self._db = db

    async def get_rating_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[RatingRecord]:
        query = (
            self._db.table("recommendations")
            .select(
                "id, restaurant_id, overall_rating, created_at, "
                "restaurant:restaurant_id(cuisine_type), "
                "contextual_factors(occasion, meal_type)"
            )
            .eq("author_id", user_id)
            .order("created_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        rows = await self._db.execute("get_rating_history", query)

        history: List[RatingRecord] = []
        for row in rows:
            restaurant = _one(row.get("restaurant")) or {}
            context = _one(row.get("contextual_factors")) or {}
            history.append(RatingRecord(
                recommendation_id=str(row["id"]),
                restaurant_id=str(row.get("restaurant_id") or row["id"]),
                cuisine_type=restaurant.get("cuisine_type"),
                overall_rating=row.get("overall_rating"),
                occasion=context.get("occasion"),
                meal_type=context.get("meal_type"),
                created_at=row.get("created_at"),
            ))
        return history

    async def get_cuisine_preferences(self, user_id: str) -> Dict[str, float]:
        rows = await self._db.execute(
            "get_cuisine_preferences",
            self._db.table("user_patterns")
            .select("cuisine_preferences")
            .eq("user_id", user_id)
            .limit(1),
        )
        if not rows:
            return {}
        preferences = rows[0].get("cuisine_preferences") or {}
        return {
            cuisine: float(weight)
            for cuisine, weight in preferences.items()
            if isinstance(weight, (int, float))
        }


class SupabaseTasteAlignmentCache:
    """TasteAlignmentCacheRepository over `taste_alignments`."""

    def __init__(self, db: SupabaseDatabase) -> None:
        self._db = db

    async def get(
        self, user_id: str, compared_user_id: str
    ) -> Optional[TasteAlignmentResult]:
        rows = await self._db.execute(
            "get_taste_alignment",
            self._db.table("taste_alignments")
            .select("*")
            .eq("user_id", user_id)
            .eq("compared_user_id", compared_user_id)
            .limit(1),
        )
        if not rows:
            return None
        return to_taste_alignment(rows[0])

    async def upsert(self, result: TasteAlignmentResult) -> None:
        await self._db.execute(
            "upsert_taste_alignment",
            self._db.table("taste_alignments").upsert(
                result.model_dump(mode="json", exclude=UNSTORED_ALIGNMENT_FIELDS),
                on_conflict="user_id,compared_user_id",
            ),
        )

    async def delete_for_user(self, user_id: str) -> int:
        removed = 0
        for column in ("user_id", "compared_user_id"):
            rows = await self._db.execute(
                "delete_taste_alignments",
                self._db.table("taste_alignments").delete().eq(column, user_id),
            )
            removed += len(rows)
        return removed


class SupabaseInteractionRepository:
    """InteractionRepository over the like, bookmark and reshare join tables."""

    def __init__(self, db: SupabaseDatabase) -> None:
        self._db = db

    async def get_interaction_status(self, user_id: str) -> InteractionStatus:
        liked, saved, reshared = await asyncio.gather(
            self._recommendation_ids("recommendation_likes", user_id),
            self._recommendation_ids("recommendation_bookmarks", user_id),
            self._recommendation_ids("recommendation_reshares", user_id),
        )
        return InteractionStatus(liked_ids=liked, saved_ids=saved, reshared_ids=reshared)

    async def toggle_like(self, user_id: str, recommendation_id: str) -> ToggleResult:
        return await self._toggle("recommendation_likes", "likes_count", user_id, recommendation_id)

    async def toggle_save(self, user_id: str, recommendation_id: str) -> ToggleResult:
        return await self._toggle("recommendation_bookmarks", "saves_count", user_id, recommendation_id)

    async def _recommendation_ids(self, table: str, user_id: str) -> List[str]:
        rows = await self._db.execute(
            f"get_{table}",
            self._db.table(table).select("recommendation_id").eq("user_id", user_id),
        )
        return [str(row["recommendation_id"]) for row in rows]

    async def _toggle(
        self, table: str, counter: str, user_id: str, recommendation_id: str
    ) -> ToggleResult:
        """Flip the join row, then move the denormalized counter (floored at 0)."""
        recs = await self._db.execute(
            "get_recommendation_counter",
            self._db.table("recommendations").select(counter).eq("id", recommendation_id).limit(1),
        )
        if not recs:
            raise NotFoundError("Recommendation", recommendation_id)

        existing = await self._db.execute(
            f"find_{table}",
            self._db.table(table)
            .select("id")
            .eq("user_id", user_id)
            .eq("recommendation_id", recommendation_id)
            .limit(1),
        )

        if existing:
            await self._db.execute(
                f"delete_{table}",
                self._db.table(table).delete().eq("id", existing[0]["id"]),
            )
            delta = -1
        else:
            await self._db.execute(
                f"insert_{table}",
                self._db.table(table).insert(
                    {"user_id": user_id, "recommendation_id": recommendation_id}
                ),
            )
            delta = 1

        new_count = max(0, (recs[0].get(counter) or 0) + delta)
        await self._db.execute(
            "update_recommendation_counter",
            self._db.table("recommendations").update({counter: new_count}).eq("id", recommendation_id),
        )
        return ToggleResult(active=delta > 0, new_count=new_count)
