"""
Taste alignment API router.
"""
import logging

from fastapi import APIRouter, Depends, Path, Query

from trustfeed.api.dependencies import get_current_user, get_taste_alignment_engine
from trustfeed.core.exceptions import NotApplicableError
from trustfeed.models.schemas import (
    BatchAlignmentRequest,
    BatchAlignmentResponse,
    TasteAlignmentResult,
)
from trustfeed.services.taste_alignment import TasteAlignmentEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/taste-alignment", tags=["taste-alignment"])


@router.post(
    "/batch",
    response_model=BatchAlignmentResponse,
    summary="Batch Taste Alignment",
)
async def batch_alignment(
    body: BatchAlignmentRequest,
    user_id: str = Depends(get_current_user),
    engine: TasteAlignmentEngine = Depends(get_taste_alignment_engine),
) -> BatchAlignmentResponse:
    """Alignment of the caller with each listed user; failed targets are omitted."""
    results = await engine.batch_get_alignment(user_id, body.user_ids)
    return BatchAlignmentResponse(results=results)


@router.delete("/cache", summary="Invalidate Taste Alignment Cache")
async def invalidate_cache(
    user_id: str = Depends(get_current_user),
    engine: TasteAlignmentEngine = Depends(get_taste_alignment_engine),
) -> dict:
    """Drop every cached pair involving the caller (after a rating change)."""
    removed = await engine.invalidate_user_cache(user_id)
    return {"success": True, "invalidated": removed}


@router.get(
    "/{compared_user_id}",
    response_model=TasteAlignmentResult,
    summary="Taste Alignment",
    responses={404: {"description": "Self-comparison is not applicable"}},
)
async def get_alignment(
    compared_user_id: str = Path(..., min_length=1),
    force_recalculate: bool = Query(default=False, description="Bypass the cache"),
    user_id: str = Depends(get_current_user),
    engine: TasteAlignmentEngine = Depends(get_taste_alignment_engine),
) -> TasteAlignmentResult:
    """How similarly the caller and another user rate restaurants."""
    result = await engine.get_alignment(user_id, compared_user_id, force_recalculate)
    if result is None:
        raise NotApplicableError("Taste alignment with yourself is not applicable")
    return result
