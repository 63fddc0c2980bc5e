"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from trustfeed.api.dependencies import (
    get_engagement_service,
    get_feed_service,
    get_taste_alignment_engine,
)
from trustfeed.main import app
from trustfeed.models.schemas import (
    AuthorProfile,
    DiscoveryRequest,
    FeedCandidate,
    FoodList,
    RatingRecord,
    Recommendation,
    RequestStatus,
    Restaurant,
    TrustContext,
)
from trustfeed.repositories.memory import (
    InMemoryContentRepository,
    InMemoryDatabase,
    InMemoryInteractionRepository,
    InMemorySocialGraphRepository,
    InMemoryTasteAlignmentCache,
    InMemoryTasteDataRepository,
    ReshareRow,
)
from trustfeed.services.collector import CandidateCollector
from trustfeed.services.engagement import EngagementService
from trustfeed.services.feed import FeedService
from trustfeed.services.formatter import FeedFormatter
from trustfeed.services.ranking import RankingEngine
from trustfeed.services.taste_alignment import TasteAlignmentEngine
from trustfeed.services.trust import TrustScorer

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
GATEWAY = "https://gateway.example/ipfs/"


@pytest.fixture
def now():
    """Fixed reference time for unit tests."""
    return NOW


@pytest.fixture
def make_profile():
    """Factory for author profiles."""
    def _make(user_id, trust_score=None):
        return AuthorProfile(
            id=user_id,
            username=user_id,
            display_name=user_id.replace("user_", "").title(),
            trust_score=trust_score,
        )
    return _make


@pytest.fixture
def make_recommendation(make_profile):
    """Factory for recommendations with a single-restaurant payload."""
    def _make(
        rec_id,
        author_id="user_author",
        created_at=NOW,
        rating=8.0,
        restaurant_id=None,
        cuisine="Japanese",
        trust_score=None,
        **fields,
    ):
        return Recommendation(
            id=rec_id,
            author=make_profile(author_id, trust_score),
            created_at=created_at,
            title=f"Review {rec_id}",
            content="Great food.",
            overall_rating=rating,
            restaurant=Restaurant(
                id=restaurant_id or f"rest_{rec_id}",
                name=f"Restaurant {rec_id}",
                cuisine_type=cuisine,
                city="Lisbon",
            ),
            **fields,
        )
    return _make


@pytest.fixture
def make_candidate(make_recommendation):
    """Factory for recommendation candidates with an optional trust score."""
    def _make(rec_id, provenance, created_at=NOW, trust=None):
        candidate = FeedCandidate(
            item=make_recommendation(rec_id, created_at=created_at),
            provenance=provenance,
        )
        if trust is not None:
            candidate.trust_context = TrustContext(
                social_weight=0.5,
                taste_alignment=0.5,
                contextual_match=0.5,
                overall_trust_score=trust,
            )
        return candidate
    return _make


@pytest.fixture
def make_rating():
    """Factory for rating history records."""
    def _make(restaurant_id, rating, cuisine="Japanese", occasion=None, meal_type=None):
        return RatingRecord(
            recommendation_id=f"rec_{restaurant_id}",
            restaurant_id=restaurant_id,
            cuisine_type=cuisine,
            overall_rating=rating,
            occasion=occasion,
            meal_type=meal_type,
        )
    return _make


@pytest.fixture
def db():
    """Empty in-memory store."""
    return InMemoryDatabase()


@pytest.fixture
def network_db(make_profile):
    """
    Small social network relative to the current time.

    alice follows bob and carol; bob follows alice. dave and erin are
    strangers to alice. alice and dave rated the same three restaurants.
    """
    store = InMemoryDatabase()
    now = datetime.now(timezone.utc)
    hour = timedelta(hours=1)

    for user_id, trust in [
        ("user_alice", 8.0),
        ("user_bob", 7.0),
        ("user_carol", 6.0),
        ("user_dave", 9.0),
        ("user_erin", None),
    ]:
        store.add_profile(make_profile(user_id, trust))

    store.follow("user_alice", "user_bob", "user_carol")
    store.follow("user_bob", "user_alice")

    sushi = Restaurant(id="r_sushi", name="Sushi Ko", cuisine_type="Japanese", city="Lisbon")
    ramen = Restaurant(id="r_ramen", name="Ramen Bar", cuisine_type="Japanese", city="Lisbon")
    trattoria = Restaurant(id="r_trat", name="Trattoria", cuisine_type="Italian", city="Lisbon")
    tacos = Restaurant(id="r_taco", name="Taco Loco", cuisine_type="Mexican", city="Porto")
    curry = Restaurant(id="r_curry", name="Curry House", cuisine_type="Indian", city="Porto")

    def add(rec_id, author_id, restaurant, rating, hours_ago, occasion="casual", meal="dinner", **fields):
        store.add_recommendation(
            Recommendation(
                id=rec_id,
                author=store.profile(author_id),
                created_at=now - hours_ago * hour,
                title=f"{restaurant.name} review",
                content="Worth a visit.",
                overall_rating=rating,
                restaurant=restaurant,
                **fields,
            ),
            occasion=occasion,
            meal_type=meal,
        )

    add("rec_a1", "user_alice", sushi, 9.0, 30, photos=["QmAlicePhoto", "https://cdn.example/a1.jpg"])
    add("rec_a2", "user_alice", trattoria, 8.0, 50, occasion="family", meal="lunch")
    add("rec_a3", "user_alice", tacos, 4.0, 70, meal="lunch")
    add("rec_b1", "user_bob", ramen, 8.5, 2)
    add("rec_b2", "user_bob", curry, 7.0, 20, meal="lunch")
    add("rec_c1", "user_carol", trattoria, 7.5, 5, occasion="family")
    add("rec_d1", "user_dave", sushi, 9.5, 3)
    add("rec_d2", "user_dave", trattoria, 8.5, 40, occasion="family", meal="lunch")
    add("rec_d3", "user_dave", tacos, 4.5, 60, meal="lunch")
    add("rec_e1", "user_erin", ramen, 9.0, 30, image_url="https://cdn.example/e1.jpg")

    store.add_reshare(ReshareRow(
        id="rs_carol_d1",
        user_id="user_carol",
        recommendation_id="rec_d1",
        reshared_at=now - hour,
        comment="Best omakase in town",
    ))

    store.add_list(FoodList(
        id="list_alice_private",
        author=store.profile("user_alice"),
        created_at=now - 6 * hour,
        title="My secret spots",
        is_public=False,
        restaurants=[sushi],
    ))
    store.add_list(FoodList(
        id="list_bob",
        author=store.profile("user_bob"),
        created_at=now - 10 * hour,
        title="Lisbon noodles",
        city="Lisbon",
        restaurants=[ramen, sushi],
    ))

    store.add_request(DiscoveryRequest(
        id="req_alice_open",
        author=store.profile("user_alice"),
        created_at=now - 4 * hour,
        title="Birthday dinner ideas?",
        location="Lisbon",
        bounty_amount=5.0,
    ))
    store.add_request(DiscoveryRequest(
        id="req_alice_closed",
        author=store.profile("user_alice"),
        created_at=now - 8 * hour,
        title="Old question",
        status=RequestStatus.CLOSED,
    ))
    store.add_request(DiscoveryRequest(
        id="req_carol",
        author=store.profile("user_carol"),
        created_at=now - 7 * hour,
        title="Vegan brunch?",
        status=RequestStatus.ANSWERED,
        dietary_restrictions=["vegan"],
    ))
    return store


@pytest.fixture
def taste_engine(network_db):
    """Taste alignment engine over the network store."""
    return TasteAlignmentEngine(
        InMemoryTasteDataRepository(network_db),
        InMemoryTasteAlignmentCache(network_db),
    )


@pytest.fixture
def test_client(network_db, taste_engine):
    """
    TestClient fixture with dependency overrides.
    Uses the in-memory network store for isolation.
    """
    interactions = InMemoryInteractionRepository(network_db)
    feed_service = FeedService(
        collector=CandidateCollector(
            content_repo=InMemoryContentRepository(network_db),
            social_repo=InMemorySocialGraphRepository(network_db),
            taste_repo=InMemoryTasteDataRepository(network_db),
        ),
        trust_scorer=TrustScorer(),
        ranking_engine=RankingEngine(),
        formatter=FeedFormatter(ipfs_gateway=GATEWAY),
        interaction_repo=interactions,
    )

    app.dependency_overrides[get_feed_service] = lambda: feed_service
    app.dependency_overrides[get_engagement_service] = lambda: EngagementService(interactions)
    app.dependency_overrides[get_taste_alignment_engine] = lambda: taste_engine

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
