"""
Unit tests for TasteAlignmentEngine.
"""
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from trustfeed.repositories.memory import InMemoryTasteAlignmentCache, InMemoryTasteDataRepository
from trustfeed.services.taste_alignment import TasteAlignmentConfig, TasteAlignmentEngine

CUISINES = ["Japanese", "Italian", "Mexican", "Thai", "Indian"]
CONTEXTS = [("date_night", "dinner"), ("family", "lunch"), ("business", "lunch")]


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def rate(db, make_recommendation, now):
    """Record a rating by adding an authored recommendation."""
    def _rate(user_id, restaurant_id, rating, cuisine="Japanese", context=(None, None)):
        rec = make_recommendation(
            f"{user_id}_{restaurant_id}_{len(db.recommendations)}",
            author_id=user_id,
            created_at=now - timedelta(days=len(db.recommendations)),
            rating=rating,
            restaurant_id=restaurant_id,
            cuisine=cuisine,
        )
        db.add_recommendation(rec, occasion=context[0], meal_type=context[1])
    return _rate


@pytest.fixture
def engine(db, clock):
    return TasteAlignmentEngine(
        InMemoryTasteDataRepository(db),
        InMemoryTasteAlignmentCache(db),
        TasteAlignmentConfig(),
        clock=clock,
    )


def rich_identical_histories(rate, users=("alice", "bob"), count=20):
    for i in range(count):
        for user in users:
            rate(
                user,
                f"r{i}",
                3 + (i * 7) % 8,
                cuisine=CUISINES[i % len(CUISINES)],
                context=CONTEXTS[i % len(CONTEXTS)],
            )


class TestGetAlignment:
    @pytest.mark.asyncio
    async def test_self_comparison_returns_none(self, engine):
        assert await engine.get_alignment("alice", "alice") is None

    @pytest.mark.asyncio
    async def test_insufficient_data_returns_neutral_without_math(self, engine, rate):
        rate("alice", "r1", 9)
        rate("alice", "r2", 8)
        rate("bob", "r1", 3)
        rate("bob", "r2", 2)

        with patch("trustfeed.services.correlation.cuisine_correlation") as cuisine, \
                patch("trustfeed.services.correlation.rating_correlation") as rating, \
                patch("trustfeed.services.correlation.context_correlation") as context, \
                patch("trustfeed.services.correlation.combine_correlations") as combine:
            result = await engine.get_alignment("alice", "bob")

        assert result.similarity_score == 0.5
        assert result.confidence_level == 0.1
        assert result.shared_restaurants == 2
        assert result.calculation_version == "2.0.0"
        cuisine.assert_not_called()
        rating.assert_not_called()
        context.assert_not_called()
        combine.assert_not_called()

    @pytest.mark.asyncio
    async def test_identical_rich_histories(self, engine, rate):
        rich_identical_histories(rate)

        result = await engine.get_alignment("alice", "bob")

        assert result.confidence_level == pytest.approx(1.0)
        assert result.similarity_score == pytest.approx(1.0)
        assert result.shared_restaurants == 20
        assert result.correlation_data.rating_correlation == pytest.approx(1.0)
        assert result.correlation_data.context_correlation == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_opposite_ratings(self, engine, rate):
        for i, rating in enumerate([2, 4, 6, 8, 10]):
            rate("alice", f"r{i}", rating, cuisine="Japanese")
            rate("bob", f"r{i}", 12 - rating, cuisine="Japanese")

        result = await engine.get_alignment("alice", "bob")

        assert result.correlation_data.rating_correlation == pytest.approx(-1.0)
        assert 0.0 <= result.similarity_score <= 1.0

    @pytest.mark.asyncio
    async def test_preferences_split(self, engine, rate):
        rate("alice", "r1", 9, cuisine="Japanese")
        rate("alice", "r2", 8, cuisine="Italian")
        rate("alice", "r3", 4, cuisine="Mexican")
        rate("bob", "r1", 9, cuisine="Japanese")
        rate("bob", "r2", 9, cuisine="Italian")
        rate("bob", "r3", 8, cuisine="Mexican")

        result = await engine.get_alignment("alice", "bob")

        assert result.shared_preferences == ["Italian", "Japanese"]
        assert result.divergent_preferences == ["Mexican"]
        assert result.shared_cuisines == ["Italian", "Japanese", "Mexican"]

    @pytest.mark.asyncio
    async def test_stored_cuisine_preferences_take_precedence(self, engine, rate, db):
        rich_identical_histories(rate)
        db.set_cuisine_preferences("alice", {"Japanese": 1.0})
        db.set_cuisine_preferences("bob", {"Italian": 1.0})

        result = await engine.get_alignment("alice", "bob")

        assert result.correlation_data.cuisine_correlation == 0.0


class TestCaching:
    @pytest.mark.asyncio
    async def test_cache_hit_returns_same_result(self, engine, rate, clock, now):
        rich_identical_histories(rate)
        first = await engine.get_alignment("alice", "bob")

        clock.advance(timedelta(days=1))
        second = await engine.get_alignment("alice", "bob")

        assert first.last_calculated == now
        assert second.last_calculated == now
        assert second.similarity_score == first.similarity_score

    @pytest.mark.asyncio
    async def test_stale_entry_recalculated(self, engine, rate, clock, now):
        rich_identical_histories(rate)
        await engine.get_alignment("alice", "bob")

        clock.advance(timedelta(days=7))
        result = await engine.get_alignment("alice", "bob")

        assert result.last_calculated == now + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_force_recalculate(self, engine, rate, clock, now):
        rich_identical_histories(rate)
        await engine.get_alignment("alice", "bob")

        clock.advance(timedelta(hours=1))
        result = await engine.get_alignment("alice", "bob", force_recalculate=True)

        assert result.last_calculated == now + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_invalidation_forces_recalculation(self, engine, rate, clock, now, db):
        rich_identical_histories(rate, users=("alice", "bob", "carol"))
        await engine.get_alignment("alice", "bob")
        await engine.get_alignment("bob", "alice")
        await engine.get_alignment("bob", "carol")

        removed = await engine.invalidate_user_cache("alice")

        assert removed == 2
        assert ("bob", "carol") in db.alignments

        clock.advance(timedelta(minutes=5))
        result = await engine.get_alignment("alice", "bob")
        assert result.last_calculated == now + timedelta(minutes=5)


class TestBatch:
    @pytest.mark.asyncio
    async def test_batch_omits_self_and_deduplicates(self, engine, rate):
        rich_identical_histories(rate, users=("alice", "bob", "carol"))

        results = await engine.batch_get_alignment("alice", ["bob", "carol", "alice", "bob"])

        assert set(results) == {"bob", "carol"}
        assert results["bob"].compared_user_id == "bob"

    @pytest.mark.asyncio
    async def test_batch_tolerates_failed_target(self, db, clock, rate):
        rich_identical_histories(rate)
        taste_repo = InMemoryTasteDataRepository(db)
        original = taste_repo.get_rating_history

        async def flaky_history(user_id, limit=None):
            if user_id == "broken":
                raise RuntimeError("store unavailable")
            return await original(user_id, limit)

        taste_repo.get_rating_history = flaky_history
        engine = TasteAlignmentEngine(taste_repo, InMemoryTasteAlignmentCache(db), clock=clock)

        results = await engine.batch_get_alignment("alice", ["bob", "broken"])

        assert set(results) == {"bob"}


class TestLifecycle:
    def test_config_from_settings(self):
        settings = MagicMock()
        settings.TASTE_ALIGNMENT_CACHE_DAYS = 3
        settings.MIN_TASTE_ALIGNMENT_DATAPOINTS = 5

        config = TasteAlignmentConfig.from_settings(settings)

        assert config.cache_duration_days == 3
        assert config.min_shared_restaurants == 5
        assert config.calculation_version == "2.0.0"

    @pytest.mark.asyncio
    async def test_closed_engine_rejects_calls(self, engine):
        await engine.close()

        with pytest.raises(RuntimeError):
            await engine.get_alignment("alice", "bob")
