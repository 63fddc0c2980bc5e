"""
Engagement toggles.
Likes and bookmarks on recommendations.
"""
import logging

from trustfeed.models.interfaces import InteractionRepository
from trustfeed.models.schemas import EngagementResponse

logger = logging.getLogger(__name__)


class EngagementService:
    """Flips like/save membership and reports the new counter."""

    def __init__(self, interaction_repo: InteractionRepository) -> None:
        self._interaction_repo = interaction_repo

    async def toggle_like(self, user_id: str, recommendation_id: str) -> EngagementResponse:
        result = await self._interaction_repo.toggle_like(user_id, recommendation_id)
        action = "liked" if result.active else "unliked"
        logger.info(
            f"Recommendation {recommendation_id} {action}, likes={result.new_count}",
            extra={"user_id": user_id},
        )
        return EngagementResponse(action=action, is_liked=result.active, new_count=result.new_count)

    async def toggle_save(self, user_id: str, recommendation_id: str) -> EngagementResponse:
        result = await self._interaction_repo.toggle_save(user_id, recommendation_id)
        action = "saved" if result.active else "unsaved"
        logger.info(
            f"Recommendation {recommendation_id} {action}, saves={result.new_count}",
            extra={"user_id": user_id},
        )
        return EngagementResponse(action=action, is_saved=result.active, new_count=result.new_count)
