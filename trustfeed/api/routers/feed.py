"""
Feed API router.
Implements GET /v1/feed and the like/save engagement toggles.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response

from trustfeed.api.dependencies import (
    get_current_user,
    get_engagement_service,
    get_feed_service,
)
from trustfeed.models.schemas import EngagementResponse, FeedResponse
from trustfeed.services.engagement import EngagementService
from trustfeed.services.feed import FeedService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/feed", tags=["feed"])


@router.get(
    "",
    response_model=FeedResponse,
    summary="Get Trust Feed",
    description="""
    Retrieve the ranked feed for the calling user.

    Content is gathered from the caller's own activity, followed users,
    taste-similar authors and trending recommendations, scored for trust
    and interleaved so own + following content keeps its target share.
    """,
    responses={
        200: {"description": "Ranked feed returned successfully"},
        401: {"description": "Missing caller identity"},
        500: {"description": "Social graph or taste profile unavailable"},
    },
)
async def get_feed(
    response: Response,
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        le=100,
        description="Maximum number of items (defaults to the configured feed size)",
    ),
    user_id: str = Depends(get_current_user),
    feed_service: FeedService = Depends(get_feed_service),
) -> FeedResponse:
    """Ranked, formatted feed for the caller."""
    feed_response = await feed_service.get_feed(user_id=user_id, max_items=limit)

    # Personalized: private, short TTL
    response.headers["Cache-Control"] = "private, max-age=30"
    response.headers["Vary"] = "X-User-ID"

    return feed_response


@router.post(
    "/items/{item_id}/like",
    response_model=EngagementResponse,
    summary="Toggle Like",
    responses={404: {"description": "Recommendation not found"}},
)
async def toggle_like(
    item_id: str = Path(..., min_length=1, description="Recommendation identifier"),
    user_id: str = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> EngagementResponse:
    """Like or unlike a recommendation."""
    return await engagement.toggle_like(user_id, item_id)


@router.post(
    "/items/{item_id}/save",
    response_model=EngagementResponse,
    summary="Toggle Bookmark",
    responses={404: {"description": "Recommendation not found"}},
)
async def toggle_save(
    item_id: str = Path(..., min_length=1, description="Recommendation identifier"),
    user_id: str = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> EngagementResponse:
    """Save or unsave a recommendation."""
    return await engagement.toggle_save(user_id, item_id)
