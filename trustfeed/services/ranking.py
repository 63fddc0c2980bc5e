"""
Ranking engine service.
Splits scored candidates into a recency-sorted primary stream and a
trust-sorted discovery stream, then interleaves them under a target ratio.
"""
import functools
import logging
from typing import List, Optional, Set, Tuple

from trustfeed.models.schemas import FeedCandidate

logger = logging.getLogger(__name__)

# Trust differences below this are treated as ties
TRUST_TIE_THRESHOLD = 0.1
RATIO_EPSILON = 1e-9


def _compare_discovery(a: FeedCandidate, b: FeedCandidate) -> int:
    """Trust score descending, near-ties broken by recency descending."""
    trust_diff = b.trust_score - a.trust_score
    if abs(trust_diff) >= TRUST_TIE_THRESHOLD:
        return 1 if trust_diff > 0 else -1
    if a.sort_timestamp == b.sort_timestamp:
        return 0
    return 1 if b.sort_timestamp > a.sort_timestamp else -1


class RankingEngine:
    """
    Main ranking engine service.
    Orchestrates partitioning, sorting and ratio interleaving of candidates.
    """

    def __init__(self, primary_ratio: float = 0.75, max_items: int = 40) -> None:
        """
        Initialize ranking engine with composition defaults.

        Args:
            primary_ratio: Target share of own + following content (0-1)
            max_items: Maximum feed length
        """
        self._primary_ratio = primary_ratio
        self._max_items = max_items

    def rank(
        self,
        candidates: List[FeedCandidate],
        primary_ratio: Optional[float] = None,
        max_items: Optional[int] = None,
    ) -> List[FeedCandidate]:
        """
        Rank scored candidates into a single feed.

        Args:
            candidates: Deduplicated candidates with trust contexts attached
            primary_ratio: Override of the target primary share
            max_items: Override of the maximum feed length

        Returns:
            Ordered feed, at most `max_items` long, no dedup key repeated
        """
        ratio = self._primary_ratio if primary_ratio is None else primary_ratio
        limit = self._max_items if max_items is None else max_items

        primary, discovery = self.partition(candidates)
        primary = self.sort_primary(primary)
        discovery = self.sort_discovery(discovery)

        ranked = self.interleave(primary, discovery, ratio, limit)

        logger.debug(
            f"Ranked {len(candidates)} candidates -> {len(primary)} primary, "
            f"{len(discovery)} discovery -> returning {len(ranked)} items"
        )
        return ranked

    @staticmethod
    def partition(
        candidates: List[FeedCandidate],
    ) -> Tuple[List[FeedCandidate], List[FeedCandidate]]:
        """Own + following content is primary; everything else is discovery."""
        primary = [c for c in candidates if c.provenance.is_primary]
        discovery = [c for c in candidates if not c.provenance.is_primary]
        return primary, discovery

    @staticmethod
    def sort_primary(primary: List[FeedCandidate]) -> List[FeedCandidate]:
        """Newest first; reshares sort by reshare time."""
        return sorted(primary, key=lambda c: c.sort_timestamp, reverse=True)

    @staticmethod
    def sort_discovery(discovery: List[FeedCandidate]) -> List[FeedCandidate]:
        return sorted(discovery, key=functools.cmp_to_key(_compare_discovery))

    @staticmethod
    def interleave(
        primary: List[FeedCandidate],
        discovery: List[FeedCandidate],
        primary_ratio: float = 0.75,
        max_items: int = 40,
    ) -> List[FeedCandidate]:
        """
        Merge two sorted streams under a target primary share.

        A discovery item is emitted only when the primary share of the
        output, counting that item, stays at or above `primary_ratio`;
        otherwise the next primary item is emitted. An exhausted stream
        falls back to the other.
        """
        if max_items <= 0:
            return []
        if not primary:
            return _unique(discovery, max_items)
        if not discovery:
            return _unique(primary, max_items)

        result: List[FeedCandidate] = []
        seen: Set[str] = set()
        primary_index = 0
        discovery_index = 0
        primary_emitted = 0

        while len(result) < max_items:
            primary_available = primary_index < len(primary)
            discovery_available = discovery_index < len(discovery)
            if not primary_available and not discovery_available:
                break

            share_with_discovery = primary_emitted / (len(result) + 1)
            prefer_discovery = share_with_discovery + RATIO_EPSILON >= primary_ratio

            if (prefer_discovery and discovery_available) or not primary_available:
                candidate = discovery[discovery_index]
                discovery_index += 1
            else:
                candidate = primary[primary_index]
                primary_index += 1

            if candidate.dedup_key in seen:
                continue
            seen.add(candidate.dedup_key)
            result.append(candidate)
            if candidate.provenance.is_primary:
                primary_emitted += 1

        return result


def _unique(stream: List[FeedCandidate], max_items: int) -> List[FeedCandidate]:
    """Truncate a single stream, skipping repeated dedup keys."""
    result: List[FeedCandidate] = []
    seen: Set[str] = set()
    for candidate in stream:
        if len(result) >= max_items:
            break
        if candidate.dedup_key in seen:
            continue
        seen.add(candidate.dedup_key)
        result.append(candidate)
    return result
