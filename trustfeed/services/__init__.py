"""Services package - business logic layer."""
from .collector import CandidateCollector, SourceLimits
from .engagement import EngagementService
from .feed import FeedService
from .formatter import FeedFormatter
from .ranking import RankingEngine
from .taste_alignment import TasteAlignmentConfig, TasteAlignmentEngine
from .trust import TRUST_WEIGHTS, TrustScorer

__all__ = [
    "CandidateCollector",
    "EngagementService",
    "FeedFormatter",
    "FeedService",
    "RankingEngine",
    "SourceLimits",
    "TRUST_WEIGHTS",
    "TasteAlignmentConfig",
    "TasteAlignmentEngine",
    "TrustScorer",
]
