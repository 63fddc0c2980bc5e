"""
Trust scorer.
Combines per-source social/taste/context weights with the author's base
reputation into one normalized score per feed candidate.
"""
from typing import Dict, List, Optional

from trustfeed.models.schemas import (
    AuthorProfile,
    DiscoveryRequest,
    FeedCandidate,
    FoodList,
    Provenance,
    Recommendation,
    Reshare,
    SourceWeights,
    TrustContext,
)


DEFAULT_AUTHOR_TRUST = 5.0
MAX_TRUST_SCORE = 10.0

SOCIAL_FACTOR = 0.3
TASTE_FACTOR = 0.5
CONTEXT_FACTOR = 0.2

TRUST_WEIGHTS: Dict[Provenance, SourceWeights] = {
    Provenance.OWN: SourceWeights(social_weight=1.0, taste_alignment=1.0, contextual_match=1.0),
    Provenance.FOLLOWING: SourceWeights(social_weight=0.8, taste_alignment=0.7, contextual_match=0.6),
    Provenance.TASTE_SIMILARITY: SourceWeights(social_weight=0.3, taste_alignment=0.9, contextual_match=0.8),
    Provenance.TRENDING: SourceWeights(social_weight=0.5, taste_alignment=0.6, contextual_match=0.9),
}


def author_of(candidate: FeedCandidate) -> AuthorProfile:
    """Profile whose reputation backs the item."""
    item = candidate.item
    if isinstance(item, Reshare):
        return item.recommendation.author
    if isinstance(item, (Recommendation, FoodList, DiscoveryRequest)):
        return item.author
    raise TypeError(f"Unsupported content item: {type(item).__name__}")


def compute_trust_score(weights: SourceWeights, author_trust: Optional[float]) -> float:
    """Weighted source inputs scaled by author reputation, clamped to [0, 10]."""
    base = DEFAULT_AUTHOR_TRUST if author_trust is None else author_trust
    blended = (
        weights.social_weight * SOCIAL_FACTOR
        + weights.taste_alignment * TASTE_FACTOR
        + weights.contextual_match * CONTEXT_FACTOR
    )
    score = blended * (base / MAX_TRUST_SCORE) * MAX_TRUST_SCORE
    return max(0.0, min(MAX_TRUST_SCORE, score))


class TrustScorer:
    """Attaches a TrustContext to feed candidates."""

    def __init__(self, weights: Optional[Dict[Provenance, SourceWeights]] = None) -> None:
        self._weights = weights or TRUST_WEIGHTS

    def score(self, candidate: FeedCandidate) -> TrustContext:
        """Trust context for one candidate, from its provenance and author."""
        weights = self._weights[candidate.provenance]
        author = author_of(candidate)
        return TrustContext(
            social_weight=weights.social_weight,
            taste_alignment=weights.taste_alignment,
            contextual_match=weights.contextual_match,
            overall_trust_score=compute_trust_score(weights, author.trust_score),
        )

    def score_all(self, candidates: List[FeedCandidate]) -> None:
        """Score candidates in place."""
        for candidate in candidates:
            candidate.trust_context = self.score(candidate)
