"""
In-memory repository implementations.
Used for prototyping and testing.
Production uses the Supabase implementations in `supabase.py`.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from trustfeed.core.exceptions import NotFoundError
from trustfeed.models.schemas import (
    AuthorProfile,
    DiscoveryRequest,
    FoodList,
    InteractionStatus,
    RatingRecord,
    Recommendation,
    Reshare,
    Restaurant,
    TasteAlignmentResult,
    ToggleResult,
)


class ReshareRow(NamedTuple):
    """Stored reshare; the wrapped recommendation is resolved on read."""

    id: str
    user_id: str
    recommendation_id: str
    reshared_at: datetime
    comment: Optional[str] = None


class InMemoryDatabase:
    """
    Shared in-memory store behind every in-memory repository.
    Simulates the relational tables the feed reads from.
    """

    def __init__(self, seed: bool = False) -> None:
        self.profiles: Dict[str, AuthorProfile] = {}
        self.follows: Dict[str, Set[str]] = {}
        self.recommendations: Dict[str, Recommendation] = {}
        self.reshares: Dict[str, ReshareRow] = {}
        self.lists: Dict[str, FoodList] = {}
        self.requests: Dict[str, DiscoveryRequest] = {}
        self.contexts: Dict[str, Tuple[Optional[str], Optional[str]]] = {}
        self.cuisine_preferences: Dict[str, Dict[str, float]] = {}
        self.alignments: Dict[Tuple[str, str], TasteAlignmentResult] = {}
        self.likes: Dict[str, Set[str]] = {}
        self.saves: Dict[str, Set[str]] = {}
        if seed:
            self._initialize_mock_data()

    # -------------------------------------------------------------------------
    # Write helpers
    # -------------------------------------------------------------------------

    def add_profile(self, profile: AuthorProfile) -> AuthorProfile:
        self.profiles[profile.id] = profile
        return profile

    def profile(self, user_id: str) -> AuthorProfile:
        return self.profiles.get(user_id) or AuthorProfile(id=user_id)

    def follow(self, follower_id: str, *following_ids: str) -> None:
        self.follows.setdefault(follower_id, set()).update(following_ids)

    def add_recommendation(
        self,
        recommendation: Recommendation,
        occasion: Optional[str] = None,
        meal_type: Optional[str] = None,
    ) -> Recommendation:
        self.recommendations[recommendation.id] = recommendation
        if occasion or meal_type:
            self.contexts[recommendation.id] = (occasion, meal_type)
        return recommendation

    def add_reshare(self, row: ReshareRow) -> ReshareRow:
        self.reshares[row.id] = row
        return row

    def add_list(self, food_list: FoodList) -> FoodList:
        self.lists[food_list.id] = food_list
        return food_list

    def add_request(self, request: DiscoveryRequest) -> DiscoveryRequest:
        self.requests[request.id] = request
        return request

    def set_cuisine_preferences(self, user_id: str, preferences: Dict[str, float]) -> None:
        self.cuisine_preferences[user_id] = dict(preferences)

    def _initialize_mock_data(self) -> None:
        """Load a small demo network for local runs."""
        now = datetime.now(timezone.utc)
        hour = timedelta(hours=1)

        for user_id, name, trust in [
            ("user_alice", "Alice", 7.5),
            ("user_bob", "Bob", 8.2),
            ("user_carol", "Carol", 6.0),
            ("user_dave", "Dave", 9.1),
            ("user_erin", "Erin", None),
        ]:
            self.add_profile(AuthorProfile(
                id=user_id,
                username=user_id.split("_", 1)[1],
                display_name=name,
                trust_score=trust,
                reputation_score=trust,
            ))

        self.follow("user_alice", "user_bob", "user_carol")
        self.follow("user_bob", "user_alice")

        restaurants = {
            "r_sushi": Restaurant(id="r_sushi", name="Sushi Ko", cuisine_type="Japanese", city="Lisbon"),
            "r_ramen": Restaurant(id="r_ramen", name="Ramen Bar", cuisine_type="Japanese", city="Lisbon"),
            "r_trat": Restaurant(id="r_trat", name="Trattoria Roma", cuisine_type="Italian", city="Lisbon"),
            "r_taco": Restaurant(id="r_taco", name="Taco Loco", cuisine_type="Mexican", city="Porto"),
            "r_curry": Restaurant(id="r_curry", name="Curry House", cuisine_type="Indian", city="Porto"),
        }

        seed_recs = [
            ("rec_a1", "user_alice", "r_sushi", 9.0, 30, "date_night", "dinner"),
            ("rec_a2", "user_alice", "r_trat", 8.0, 50, "family", "lunch"),
            ("rec_a3", "user_alice", "r_taco", 4.0, 70, "casual", "lunch"),
            ("rec_b1", "user_bob", "r_ramen", 8.5, 2, "casual", "dinner"),
            ("rec_b2", "user_bob", "r_curry", 7.0, 20, "casual", "lunch"),
            ("rec_c1", "user_carol", "r_trat", 7.5, 5, "family", "dinner"),
            ("rec_d1", "user_dave", "r_sushi", 9.5, 3, "date_night", "dinner"),
            ("rec_d2", "user_dave", "r_trat", 8.5, 40, "family", "lunch"),
            ("rec_d3", "user_dave", "r_taco", 5.0, 60, "casual", "lunch"),
            ("rec_e1", "user_erin", "r_ramen", 9.0, 1, "business", "lunch"),
        ]
        for rec_id, author_id, restaurant_id, rating, age_hours, occasion, meal in seed_recs:
            restaurant = restaurants[restaurant_id]
            self.add_recommendation(
                Recommendation(
                    id=rec_id,
                    author=self.profile(author_id),
                    created_at=now - age_hours * hour,
                    title=f"{restaurant.name} review",
                    content=f"Notes on {restaurant.name}.",
                    overall_rating=rating,
                    restaurant=restaurant,
                    context_tags=[occasion],
                ),
                occasion=occasion,
                meal_type=meal,
            )

        self.add_reshare(ReshareRow(
            id="rs_c1", user_id="user_carol", recommendation_id="rec_d1",
            reshared_at=now - hour, comment="Best omakase in town",
        ))
        self.add_list(FoodList(
            id="list_b1",
            author=self.profile("user_bob"),
            created_at=now - 10 * hour,
            title="Lisbon noodles",
            category="noodles",
            city="Lisbon",
            restaurants=[restaurants["r_ramen"], restaurants["r_sushi"]],
        ))
        self.add_request(DiscoveryRequest(
            id="req_c1",
            author=self.profile("user_carol"),
            created_at=now - 4 * hour,
            title="Birthday dinner ideas?",
            location="Lisbon",
            occasion="celebration",
            bounty_amount=5.0,
        ))


class InMemorySocialGraphRepository:
    """In-memory implementation of SocialGraphRepository."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get_following_ids(self, user_id: str) -> List[str]:
        return sorted(self._db.follows.get(user_id, set()))


class InMemoryContentRepository:
    """
    In-memory implementation of ContentRepository.
    Returns copies so callers never mutate stored rows.
    """

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get_recommendations_by_authors(
        self, author_ids: Sequence[str], limit: int
    ) -> List[Recommendation]:
        authors = set(author_ids)
        return self._newest(
            [r for r in self._db.recommendations.values() if r.author.id in authors], limit
        )

    async def get_reshares_by_users(
        self, user_ids: Sequence[str], limit: int
    ) -> List[Reshare]:
        users = set(user_ids)
        rows = sorted(
            (row for row in self._db.reshares.values() if row.user_id in users),
            key=lambda row: row.reshared_at,
            reverse=True,
        )
        reshares: List[Reshare] = []
        for row in rows:
            recommendation = self._db.recommendations.get(row.recommendation_id)
            if recommendation is None:
                continue
            reshares.append(Reshare(
                id=row.id,
                resharer=self._db.profile(row.user_id),
                reshared_at=row.reshared_at,
                comment=row.comment,
                recommendation=recommendation.model_copy(deep=True),
            ))
            if len(reshares) >= limit:
                break
        return reshares

    async def get_lists_by_authors(
        self, author_ids: Sequence[str], limit: int, public_only: bool = True
    ) -> List[FoodList]:
        authors = set(author_ids)
        return self._newest(
            [
                lst for lst in self._db.lists.values()
                if lst.author.id in authors and (lst.is_public or not public_only)
            ],
            limit,
        )

    async def get_requests_by_creators(
        self, creator_ids: Sequence[str], statuses: Sequence[str], limit: int
    ) -> List[DiscoveryRequest]:
        creators = set(creator_ids)
        wanted = set(statuses)
        return self._newest(
            [
                req for req in self._db.requests.values()
                if req.author.id in creators and req.status.value in wanted
            ],
            limit,
        )

    async def get_recommendations_by_cuisines(
        self,
        cuisines: Sequence[str],
        exclude_author_ids: Sequence[str],
        min_rating: float,
        limit: int,
    ) -> List[Recommendation]:
        wanted = set(cuisines)
        excluded = set(exclude_author_ids)
        return self._newest(
            [
                r for r in self._db.recommendations.values()
                if r.cuisine_type in wanted
                and r.author.id not in excluded
                and r.overall_rating >= min_rating
            ],
            limit,
        )

    async def get_recent_recommendations(
        self, since: datetime, min_rating: float, limit: int
    ) -> List[Recommendation]:
        return self._newest(
            [
                r for r in self._db.recommendations.values()
                if r.created_at >= since and r.overall_rating >= min_rating
            ],
            limit,
        )

    @staticmethod
    def _newest(items: list, limit: int) -> list:
        items = sorted(items, key=lambda item: item.created_at, reverse=True)[:limit]
        return [item.model_copy(deep=True) for item in items]


class InMemoryTasteDataRepository:
    """
    In-memory implementation of TasteDataRepository.
    A user's rating history is the set of recommendations they authored.
    """

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get_rating_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[RatingRecord]:
        recs = sorted(
            (r for r in self._db.recommendations.values() if r.author.id == user_id),
            key=lambda r: r.created_at,
            reverse=True,
        )
        if limit is not None:
            recs = recs[:limit]

        history: List[RatingRecord] = []
        for rec in recs:
            occasion, meal_type = self._db.contexts.get(rec.id, (None, None))
            history.append(RatingRecord(
                recommendation_id=rec.id,
                restaurant_id=rec.restaurant.id if rec.restaurant else rec.id,
                cuisine_type=rec.cuisine_type,
                overall_rating=rec.overall_rating,
                occasion=occasion,
                meal_type=meal_type,
                created_at=rec.created_at,
            ))
        return history

    async def get_cuisine_preferences(self, user_id: str) -> Dict[str, float]:
        return dict(self._db.cuisine_preferences.get(user_id, {}))


class InMemoryTasteAlignmentCache:
    """In-memory implementation of TasteAlignmentCacheRepository."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get(
        self, user_id: str, compared_user_id: str
    ) -> Optional[TasteAlignmentResult]:
        cached = self._db.alignments.get((user_id, compared_user_id))
        return cached.model_copy(deep=True) if cached else None

    async def upsert(self, result: TasteAlignmentResult) -> None:
        self._db.alignments[(result.user_id, result.compared_user_id)] = result.model_copy(deep=True)

    async def delete_for_user(self, user_id: str) -> int:
        keys = [key for key in self._db.alignments if user_id in key]
        for key in keys:
            del self._db.alignments[key]
        return len(keys)


class InMemoryInteractionRepository:
    """In-memory implementation of InteractionRepository."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get_interaction_status(self, user_id: str) -> InteractionStatus:
        reshared = {row.recommendation_id for row in self._db.reshares.values() if row.user_id == user_id}
        return InteractionStatus(
            liked_ids=sorted(self._db.likes.get(user_id, set())),
            saved_ids=sorted(self._db.saves.get(user_id, set())),
            reshared_ids=sorted(reshared),
        )

    async def toggle_like(self, user_id: str, recommendation_id: str) -> ToggleResult:
        recommendation = self._get_recommendation(recommendation_id)
        active = self._toggle(self._db.likes, user_id, recommendation_id)
        engagement = recommendation.engagement
        engagement.likes = max(0, engagement.likes + (1 if active else -1))
        return ToggleResult(active=active, new_count=engagement.likes)

    async def toggle_save(self, user_id: str, recommendation_id: str) -> ToggleResult:
        recommendation = self._get_recommendation(recommendation_id)
        active = self._toggle(self._db.saves, user_id, recommendation_id)
        engagement = recommendation.engagement
        engagement.saves = max(0, engagement.saves + (1 if active else -1))
        return ToggleResult(active=active, new_count=engagement.saves)

    def _get_recommendation(self, recommendation_id: str) -> Recommendation:
        recommendation = self._db.recommendations.get(recommendation_id)
        if recommendation is None:
            raise NotFoundError("Recommendation", recommendation_id)
        return recommendation

    @staticmethod
    def _toggle(table: Dict[str, Set[str]], user_id: str, recommendation_id: str) -> bool:
        """Flip membership; True when the row now exists."""
        members = table.setdefault(user_id, set())
        if recommendation_id in members:
            members.discard(recommendation_id)
            return False
        members.add(recommendation_id)
        return True
