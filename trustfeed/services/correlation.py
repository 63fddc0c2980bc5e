"""
Correlation math for taste alignment.
Pure, store-independent functions; degenerate inputs return 0.
"""
import math
from typing import Mapping, NamedTuple, Sequence, Tuple

from trustfeed.models.schemas import ContextKey, SharedDataPoints


class CorrelationWeights(NamedTuple):
    """Blend of the three sub-scores into one similarity."""

    cuisine: float = 0.5
    rating: float = 0.35
    context: float = 0.15


DEFAULT_WEIGHTS = CorrelationWeights()

# (threshold, contribution), checked from the highest threshold down
SHARED_RESTAURANT_BANDS = ((10, 0.6), (5, 0.4), (3, 0.2))
SAMPLE_SIZE_BANDS = ((20, 0.4), (10, 0.3), (5, 0.2))
SAMPLE_SIZE_FLOOR = 0.1


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    """Clamp into [low, high]; non-finite values collapse to 0."""
    if not math.isfinite(value):
        return 0.0
    return max(low, min(high, value))


def cuisine_correlation(
    user_prefs: Mapping[str, float],
    compared_prefs: Mapping[str, float],
) -> float:
    """
    Cosine similarity between two sparse cuisine preference vectors.

    Missing cuisines count as 0 on that side. Returns 0 when either
    vector has zero magnitude.
    """
    cuisines = set(user_prefs) | set(compared_prefs)
    if not cuisines:
        return 0.0

    dot_product = 0.0
    user_magnitude = 0.0
    compared_magnitude = 0.0
    for cuisine in cuisines:
        user_score = float(user_prefs.get(cuisine, 0.0) or 0.0)
        compared_score = float(compared_prefs.get(cuisine, 0.0) or 0.0)
        dot_product += user_score * compared_score
        user_magnitude += user_score * user_score
        compared_magnitude += compared_score * compared_score

    if user_magnitude == 0 or compared_magnitude == 0:
        return 0.0

    return clamp(dot_product / (math.sqrt(user_magnitude) * math.sqrt(compared_magnitude)))


def rating_correlation(pairs: Sequence[Tuple[float, float]]) -> float:
    """
    Pearson correlation over ratings both users gave the same restaurants.

    Returns 0 with no pairs or when either side has zero variance.
    """
    if not pairs:
        return 0.0

    user_mean = sum(u for u, _ in pairs) / len(pairs)
    compared_mean = sum(c for _, c in pairs) / len(pairs)

    numerator = 0.0
    user_sum_sq = 0.0
    compared_sum_sq = 0.0
    for user_rating, compared_rating in pairs:
        user_diff = user_rating - user_mean
        compared_diff = compared_rating - compared_mean
        numerator += user_diff * compared_diff
        user_sum_sq += user_diff * user_diff
        compared_sum_sq += compared_diff * compared_diff

    if user_sum_sq == 0 or compared_sum_sq == 0:
        return 0.0

    return clamp(numerator / math.sqrt(user_sum_sq * compared_sum_sq))


def context_correlation(
    user_contexts: Mapping[ContextKey, int],
    compared_contexts: Mapping[ContextKey, int],
) -> float:
    """
    Overlap ratio of two (occasion, meal_type) frequency tables.

    This is a cheap proxy rather than a statistical correlation: the share
    of context rows, across both users, that appear in both tables.
    Frequencies are ignored. A row with a None field never matches, not even
    an identical row on the other side. Always within [0, 1].
    """
    matches = len({
        key for key in set(user_contexts) & set(compared_contexts)
        if None not in key
    })
    rows = len(user_contexts) + len(compared_contexts) - matches
    if not rows:
        return 0.0
    return clamp(matches / rows)


def combine_correlations(
    cuisine: float,
    rating: float,
    context: float,
    weights: CorrelationWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted blend of the sub-scores, remapped from [-1, 1] to [0, 1]."""
    weighted = (
        clamp(cuisine) * weights.cuisine
        + clamp(rating) * weights.rating
        + clamp(context) * weights.context
    )
    return clamp((weighted + 1) / 2, 0.0, 1.0)


def confidence_level(shared: SharedDataPoints) -> float:
    """
    Evidence behind a similarity score, in [0, 1].

    Sum of a shared-restaurant band (up to 0.6) and a sample-size band on
    the smaller of the two users' rating counts (0.1 floor, up to 0.4).
    """
    confidence = 0.0

    for threshold, contribution in SHARED_RESTAURANT_BANDS:
        if shared.shared_restaurants >= threshold:
            confidence += contribution
            break

    min_ratings = min(shared.total_user_ratings, shared.total_compared_ratings)
    for threshold, contribution in SAMPLE_SIZE_BANDS:
        if min_ratings >= threshold:
            confidence += contribution
            break
    else:
        confidence += SAMPLE_SIZE_FLOOR

    return round(min(confidence, 1.0), 4)
