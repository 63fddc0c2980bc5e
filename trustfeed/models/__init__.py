"""Models package - domain entities and interfaces."""
from .interfaces import (
    ContentRepository,
    InteractionRepository,
    SocialGraphRepository,
    TasteAlignmentCacheRepository,
    TasteDataRepository,
)
from .schemas import (
    AuthorProfile,
    CandidatePool,
    ContentItem,
    CorrelationData,
    DiscoveryRequest,
    ErrorResponse,
    FeedCandidate,
    FeedMetadata,
    FeedResponse,
    FoodList,
    FormattedItem,
    InteractionStatus,
    Provenance,
    RatingRecord,
    Recommendation,
    Reshare,
    Restaurant,
    SharedDataPoints,
    TasteAlignmentResult,
    TrustContext,
)

__all__ = [
    # Interfaces
    "ContentRepository",
    "InteractionRepository",
    "SocialGraphRepository",
    "TasteAlignmentCacheRepository",
    "TasteDataRepository",
    # Schemas
    "AuthorProfile",
    "CandidatePool",
    "ContentItem",
    "CorrelationData",
    "DiscoveryRequest",
    "ErrorResponse",
    "FeedCandidate",
    "FeedMetadata",
    "FeedResponse",
    "FoodList",
    "FormattedItem",
    "InteractionStatus",
    "Provenance",
    "RatingRecord",
    "Recommendation",
    "Reshare",
    "Restaurant",
    "SharedDataPoints",
    "TasteAlignmentResult",
    "TrustContext",
]
