"""
Feed service - main business logic orchestrator.
Coordinates candidate collection, trust scoring, ranking and formatting.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from trustfeed.core.telemetry import get_tracer
from trustfeed.models.interfaces import InteractionRepository
from trustfeed.models.schemas import FeedMetadata, FeedResponse, InteractionStatus
from trustfeed.services.collector import CandidateCollector
from trustfeed.services.formatter import FeedFormatter
from trustfeed.services.ranking import RankingEngine
from trustfeed.services.trust import TrustScorer

logger = logging.getLogger(__name__)


class FeedService:
    """
    Main feed service orchestrating the assembly flow.

    Responsibilities:
    - Collect candidates from every source
    - Attach trust contexts and rank
    - Look up the caller's interactions (degrading to no flags)
    - Render the wire format
    """

    def __init__(
            self,
            collector: CandidateCollector,
            trust_scorer: TrustScorer,
            ranking_engine: RankingEngine,
            formatter: FeedFormatter,
            interaction_repo: InteractionRepository,
    ) -> None:
        """
        Initialize feed service with dependencies.

        Args:
            collector: Gathers the deduplicated candidate pool
            trust_scorer: Attaches trust contexts
            ranking_engine: Splits, sorts and interleaves candidates
            formatter: Renders ranked candidates for clients
            interaction_repo: Source of the caller's like/save/reshare state
        """
        self._collector = collector
        self._trust_scorer = trust_scorer
        self._ranking_engine = ranking_engine
        self._formatter = formatter
        self._interaction_repo = interaction_repo

    async def get_feed(
            self,
            user_id: str,
            primary_ratio: Optional[float] = None,
            max_items: Optional[int] = None,
    ) -> FeedResponse:
        """
        Build the ranked feed for a user.

        Args:
            user_id: Caller identifier
            primary_ratio: Override of the target own + following share
            max_items: Override of the maximum feed length

        Returns:
            FeedResponse with formatted items and metadata

        Raises:
            FeedGenerationError: If the follow graph or rating history
                cannot be loaded
        """
        start_time = time.time()
        tracer = get_tracer()

        with tracer.start_as_current_span("feed.collect") as span:
            pool = await self._collector.collect(user_id)
            span.set_attribute("feed.candidates", len(pool.candidates))
            span.set_attribute("feed.failed_sources", len(pool.failed_sources))

        with tracer.start_as_current_span("feed.rank"):
            self._trust_scorer.score_all(pool.candidates)
            ranked = self._ranking_engine.rank(
                pool.candidates, primary_ratio=primary_ratio, max_items=max_items
            )

        interactions = await self._get_interactions(user_id)

        with tracer.start_as_current_span("feed.format"):
            items = self._formatter.format(ranked, interactions)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Feed served: items={len(items)}, candidates={len(pool.candidates)}, "
            f"elapsed_ms={elapsed_ms:.2f}",
            extra={"user_id": user_id},
        )

        return FeedResponse(
            feed=items,
            metadata=FeedMetadata(
                total_items=len(items),
                generated_at=datetime.now(timezone.utc),
            ),
        )

    async def _get_interactions(self, user_id: str) -> InteractionStatus:
        """Interaction flags for the caller; empty when the lookup fails."""
        try:
            return await self._interaction_repo.get_interaction_status(user_id)
        except Exception as e:
            logger.warning(
                f"Interaction status lookup failed, flags default to false: {e}",
                extra={"user_id": user_id},
            )
            return InteractionStatus()
