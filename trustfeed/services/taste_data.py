"""
Pure derivations over rating histories.
Turns two users' raw rating records into the in-memory structures the
correlation math consumes.
"""
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from trustfeed.models.schemas import ContextKey, RatingRecord, SharedDataPoints

LIKED_RATING = 7.0
DISLIKED_RATING = 5.0


def _rated(history: Iterable[RatingRecord]) -> List[RatingRecord]:
    return [r for r in history if r.overall_rating is not None]


def shared_data_points(
    user_history: Sequence[RatingRecord],
    compared_history: Sequence[RatingRecord],
) -> SharedDataPoints:
    """Count restaurants both users rated and the cuisines they agree on."""
    user_cuisines = {r.restaurant_id: r.cuisine_type for r in user_history}
    compared_cuisines = {r.restaurant_id: r.cuisine_type for r in compared_history}

    shared_ids = set(user_cuisines) & set(compared_cuisines)
    shared_cuisines = sorted(
        {
            user_cuisines[rid]
            for rid in shared_ids
            if user_cuisines[rid] and user_cuisines[rid] == compared_cuisines[rid]
        }
    )

    return SharedDataPoints(
        shared_restaurants=len(shared_ids),
        shared_cuisines=shared_cuisines,
        total_user_ratings=len(user_history),
        total_compared_ratings=len(compared_history),
    )


def _mean_rating_by(
    history: Iterable[RatingRecord], key: str
) -> Dict[str, float]:
    totals: Dict[str, List[float]] = defaultdict(list)
    for record in _rated(history):
        value = getattr(record, key)
        if value:
            totals[value].append(float(record.overall_rating))
    return {k: sum(v) / len(v) for k, v in totals.items()}


def paired_ratings(
    user_history: Sequence[RatingRecord],
    compared_history: Sequence[RatingRecord],
) -> List[Tuple[float, float]]:
    """One (user, compared) pair per shared restaurant, repeat ratings averaged."""
    user_means = _mean_rating_by(user_history, "restaurant_id")
    compared_means = _mean_rating_by(compared_history, "restaurant_id")
    return [
        (user_means[rid], compared_means[rid])
        for rid in sorted(set(user_means) & set(compared_means))
    ]


def context_table(history: Iterable[RatingRecord]) -> Dict[ContextKey, int]:
    """
    Frequency of (occasion, meal_type) combinations in a history.
    Missing fields stay None; records with neither field are skipped.
    """
    table: Counter = Counter()
    for record in history:
        if record.occasion is None and record.meal_type is None:
            continue
        table[(record.occasion, record.meal_type)] += 1
    return dict(table)


def cuisine_averages(history: Iterable[RatingRecord]) -> Dict[str, float]:
    """Average rating per cuisine."""
    return _mean_rating_by(history, "cuisine_type")


def split_preferences(
    user_averages: Dict[str, float],
    compared_averages: Dict[str, float],
) -> Tuple[List[str], List[str]]:
    """
    Partition cuisines into shared and divergent preferences.

    Shared: both users average at least 7. Divergent: one averages at least
    7 while the other averages 5 or less (an unrated cuisine counts as 0).
    """
    shared: List[str] = []
    divergent: List[str] = []
    for cuisine in sorted(set(user_averages) | set(compared_averages)):
        user_rating = user_averages.get(cuisine, 0.0)
        compared_rating = compared_averages.get(cuisine, 0.0)
        if user_rating >= LIKED_RATING and compared_rating >= LIKED_RATING:
            shared.append(cuisine)
        elif (user_rating >= LIKED_RATING and compared_rating <= DISLIKED_RATING) or (
            user_rating <= DISLIKED_RATING and compared_rating >= LIKED_RATING
        ):
            divergent.append(cuisine)
    return shared, divergent


def top_cuisines(
    history: Iterable[RatingRecord],
    min_rating: float = LIKED_RATING,
    limit: int = 5,
) -> List[str]:
    """Cuisines the user rated at least `min_rating`, most frequent first."""
    counts = Counter(
        r.cuisine_type
        for r in _rated(history)
        if r.cuisine_type and r.overall_rating >= min_rating
    )
    return [cuisine for cuisine, _ in counts.most_common(limit)]
