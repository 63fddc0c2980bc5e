"""
Taste alignment engine.
Computes how similarly two users rate restaurants, with a confidence level,
and keeps results in a time-bounded cache table.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from trustfeed.config.settings import Settings
from trustfeed.models.interfaces import TasteAlignmentCacheRepository, TasteDataRepository
from trustfeed.models.schemas import CorrelationData, SharedDataPoints, TasteAlignmentResult
from trustfeed.services import correlation, taste_data
from trustfeed.services.correlation import CorrelationWeights

logger = logging.getLogger(__name__)

NEUTRAL_SIMILARITY = 0.5
NEUTRAL_CONFIDENCE = 0.1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TasteAlignmentConfig(BaseModel):
    """Explicit engine configuration."""

    cache_duration_days: int = Field(default=7, ge=0)
    min_shared_restaurants: int = Field(default=3, ge=0)
    calculation_version: str = "2.0.0"
    weights: CorrelationWeights = CorrelationWeights()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TasteAlignmentConfig":
        return cls(
            cache_duration_days=settings.TASTE_ALIGNMENT_CACHE_DAYS,
            min_shared_restaurants=settings.MIN_TASTE_ALIGNMENT_DATAPOINTS,
        )


class TasteAlignmentEngine:
    """
    Pairwise user similarity with caching.

    Usage:
        engine = TasteAlignmentEngine(taste_repo, cache_repo, TasteAlignmentConfig())
        result = await engine.get_alignment("alice", "bob")
    """

    def __init__(
        self,
        taste_repository: TasteDataRepository,
        cache_repository: TasteAlignmentCacheRepository,
        config: Optional[TasteAlignmentConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the engine.

        Args:
            taste_repository: Source of rating histories and cuisine profiles
            cache_repository: Persisted alignment results
            config: Cache lifetime, data threshold and weights
            clock: Returns the current UTC time (injectable for tests)
        """
        self._taste_repo = taste_repository
        self._cache_repo = cache_repository
        self._config = config or TasteAlignmentConfig()
        self._clock = clock
        self._closed = False

    @property
    def config(self) -> TasteAlignmentConfig:
        return self._config

    async def get_alignment(
        self,
        user_id: str,
        compared_user_id: str,
        force_recalculate: bool = False,
    ) -> Optional[TasteAlignmentResult]:
        """
        Get or calculate the taste alignment of `user_id` with `compared_user_id`.

        Returns None for a self-comparison. A cached result is returned while
        it is younger than the cache lifetime unless `force_recalculate`.
        """
        self._ensure_open()
        if user_id == compared_user_id:
            return None

        if not force_recalculate:
            cached = await self._cache_repo.get(user_id, compared_user_id)
            if cached is not None and self._is_fresh(cached):
                logger.debug(
                    "Taste alignment cache hit",
                    extra={"user_id": user_id, "compared_user_id": compared_user_id},
                )
                return cached

        result = await self._calculate(user_id, compared_user_id)

        if result.confidence_level > 0:
            await self._cache_repo.upsert(result)

        return result

    async def batch_get_alignment(
        self,
        user_id: str,
        compared_user_ids: Iterable[str],
    ) -> Dict[str, TasteAlignmentResult]:
        """
        Alignments of one user against many, computed independently.
        Self-comparisons and failed targets are left out of the map.
        """
        targets = list(dict.fromkeys(t for t in compared_user_ids if t != user_id))
        outcomes = await asyncio.gather(
            *(self.get_alignment(user_id, target) for target in targets),
            return_exceptions=True,
        )

        results: Dict[str, TasteAlignmentResult] = {}
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Taste alignment failed for pair: {outcome}",
                    extra={"user_id": user_id, "compared_user_id": target},
                )
                continue
            if outcome is not None:
                results[target] = outcome
        return results

    async def invalidate_user_cache(self, user_id: str) -> int:
        """
        Drop every cached pair involving the user.
        Call whenever the user's rating history changes.
        """
        self._ensure_open()
        removed = await self._cache_repo.delete_for_user(user_id)
        logger.info(
            f"Invalidated {removed} taste alignment entries",
            extra={"user_id": user_id},
        )
        return removed

    async def close(self) -> None:
        """Mark the engine closed; further calls raise RuntimeError."""
        self._closed = True

    # -------------------------------------------------------------------------
    # Calculation
    # -------------------------------------------------------------------------

    async def _calculate(self, user_id: str, compared_user_id: str) -> TasteAlignmentResult:
        user_history, compared_history = await asyncio.gather(
            self._taste_repo.get_rating_history(user_id),
            self._taste_repo.get_rating_history(compared_user_id),
        )

        shared = taste_data.shared_data_points(user_history, compared_history)
        if shared.shared_restaurants < self._config.min_shared_restaurants:
            return self._low_confidence_result(user_id, compared_user_id, shared)

        user_prefs, compared_prefs = await asyncio.gather(
            self._taste_repo.get_cuisine_preferences(user_id),
            self._taste_repo.get_cuisine_preferences(compared_user_id),
        )
        user_averages = taste_data.cuisine_averages(user_history)
        compared_averages = taste_data.cuisine_averages(compared_history)

        correlations = CorrelationData(
            cuisine_correlation=correlation.cuisine_correlation(
                user_prefs or user_averages,
                compared_prefs or compared_averages,
            ),
            rating_correlation=correlation.rating_correlation(
                taste_data.paired_ratings(user_history, compared_history)
            ),
            context_correlation=correlation.context_correlation(
                taste_data.context_table(user_history),
                taste_data.context_table(compared_history),
            ),
        )

        similarity = correlation.combine_correlations(
            correlations.cuisine_correlation,
            correlations.rating_correlation,
            correlations.context_correlation,
            self._config.weights,
        )
        confidence = correlation.confidence_level(shared)
        shared_prefs, divergent_prefs = taste_data.split_preferences(
            user_averages, compared_averages
        )

        logger.info(
            f"Taste alignment calculated: similarity={similarity:.3f}, "
            f"confidence={confidence:.2f}, shared={shared.shared_restaurants}",
            extra={"user_id": user_id, "compared_user_id": compared_user_id},
        )

        return TasteAlignmentResult(
            user_id=user_id,
            compared_user_id=compared_user_id,
            similarity_score=similarity,
            confidence_level=confidence,
            shared_preferences=shared_prefs,
            divergent_preferences=divergent_prefs,
            correlation_data=correlations,
            shared_restaurants=shared.shared_restaurants,
            shared_cuisines=shared.shared_cuisines,
            last_calculated=self._clock(),
            calculation_version=self._config.calculation_version,
        )

    def _low_confidence_result(
        self,
        user_id: str,
        compared_user_id: str,
        shared: SharedDataPoints,
    ) -> TasteAlignmentResult:
        """Neutral result when the pair shares too few restaurants."""
        return TasteAlignmentResult(
            user_id=user_id,
            compared_user_id=compared_user_id,
            similarity_score=NEUTRAL_SIMILARITY,
            confidence_level=NEUTRAL_CONFIDENCE,
            shared_restaurants=shared.shared_restaurants,
            shared_cuisines=shared.shared_cuisines,
            last_calculated=self._clock(),
            calculation_version=self._config.calculation_version,
        )

    def _is_fresh(self, cached: TasteAlignmentResult) -> bool:
        calculated = cached.last_calculated
        if calculated.tzinfo is None:
            calculated = calculated.replace(tzinfo=timezone.utc)
        age = self._clock() - calculated
        return age < timedelta(days=self._config.cache_duration_days)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("TasteAlignmentEngine is closed")
