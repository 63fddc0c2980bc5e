"""
Domain models using Pydantic.
All data structures for the feed and taste-alignment pipeline.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enumerations
# =============================================================================


class Provenance(str, Enum):
    """Source category that surfaced a feed candidate."""

    OWN = "own"
    FOLLOWING = "following"
    TASTE_SIMILARITY = "taste_similarity"
    TRENDING = "trending"

    @property
    def is_primary(self) -> bool:
        """Own and followed content form the recency-sorted primary stream."""
        return self in (Provenance.OWN, Provenance.FOLLOWING)


class RequestStatus(str, Enum):
    """Lifecycle of a discovery request."""

    OPEN = "open"
    ANSWERED = "answered"
    CLOSED = "closed"
    EXPIRED = "expired"


ACTIVE_REQUEST_STATUSES = (RequestStatus.OPEN, RequestStatus.ANSWERED)


# =============================================================================
# Embedded Records
# =============================================================================


class AuthorProfile(BaseModel):
    """Public profile of a content author, embedded in every item."""

    id: str = Field(..., description="User identifier")
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    trust_score: Optional[float] = Field(
        default=None,
        ge=0,
        le=10,
        description="Base reputation on a 0-10 scale",
    )
    reputation_score: Optional[float] = None


class Restaurant(BaseModel):
    """Restaurant referenced by recommendations and lists."""

    id: str
    name: str = "Unknown Restaurant"
    cuisine_type: Optional[str] = None
    address: Optional[str] = None
    formatted_address: Optional[str] = None
    city: Optional[str] = None
    image_url: Optional[str] = None
    average_rating: float = 0.0


class RestaurantAspects(BaseModel):
    """Optional per-aspect scores attached to a recommendation."""

    ambiance: Optional[float] = None
    service: Optional[float] = None
    value_for_money: Optional[float] = None
    noise_level: Optional[str] = None


class Engagement(BaseModel):
    """Denormalized engagement counters."""

    likes: int = 0
    saves: int = 0
    reshares: int = 0
    comments: int = 0


# =============================================================================
# Content Items (tagged union on `kind`)
# =============================================================================


class Recommendation(BaseModel):
    """A rated restaurant recommendation."""

    kind: Literal["recommendation"] = "recommendation"
    id: str
    author: AuthorProfile
    created_at: datetime
    engagement: Engagement = Field(default_factory=Engagement)
    title: str = ""
    content: str = ""
    overall_rating: float = Field(default=0.0, ge=0, le=10)
    restaurant: Optional[Restaurant] = None
    context_tags: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    aspects: Optional[RestaurantAspects] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None

    @property
    def dedup_key(self) -> str:
        return f"recommendation:{self.id}"

    @property
    def sort_timestamp(self) -> datetime:
        return self.created_at

    @property
    def cuisine_type(self) -> Optional[str]:
        return self.restaurant.cuisine_type if self.restaurant else None


class Reshare(BaseModel):
    """A followed (or own) user's reshare wrapping a recommendation."""

    kind: Literal["reshare"] = "reshare"
    id: str = Field(..., description="Reshare identifier")
    resharer: AuthorProfile
    reshared_at: datetime
    comment: Optional[str] = None
    recommendation: Recommendation

    @property
    def author(self) -> AuthorProfile:
        """Author of the underlying recommendation."""
        return self.recommendation.author

    @property
    def created_at(self) -> datetime:
        return self.recommendation.created_at

    @property
    def dedup_key(self) -> str:
        # Reshares collide with the recommendation they wrap
        return self.recommendation.dedup_key

    @property
    def sort_timestamp(self) -> datetime:
        return self.reshared_at


class FoodList(BaseModel):
    """A curated restaurant list (guide)."""

    kind: Literal["list"] = "list"
    id: str
    author: AuthorProfile
    created_at: datetime
    engagement: Engagement = Field(default_factory=Engagement)
    title: str = ""
    description: str = ""
    category: str = ""
    city: str = ""
    tags: List[str] = Field(default_factory=list)
    best_for: str = ""
    cover_image_url: Optional[str] = None
    cover_image_source: Optional[str] = None
    is_public: bool = True
    restaurants: List[Restaurant] = Field(default_factory=list)

    @property
    def dedup_key(self) -> str:
        return f"list:{self.id}"

    @property
    def sort_timestamp(self) -> datetime:
        return self.created_at


class DiscoveryRequest(BaseModel):
    """A user's request for restaurant suggestions, optionally with a bounty."""

    kind: Literal["request"] = "request"
    id: str
    author: AuthorProfile
    created_at: datetime
    engagement: Engagement = Field(default_factory=Engagement)
    title: str = ""
    description: str = ""
    location: Optional[str] = None
    cuisine_type: Optional[str] = None
    occasion: Optional[str] = None
    budget_range: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    bounty_amount: float = 0.0
    status: RequestStatus = RequestStatus.OPEN
    response_count: int = 0
    view_count: int = 0
    expires_at: Optional[datetime] = None

    @property
    def dedup_key(self) -> str:
        return f"request:{self.id}"

    @property
    def sort_timestamp(self) -> datetime:
        return self.created_at


ContentItem = Annotated[
    Union[Recommendation, Reshare, FoodList, DiscoveryRequest],
    Field(discriminator="kind"),
]


# =============================================================================
# Scoring Models
# =============================================================================


class SourceWeights(BaseModel):
    """Per-provenance trust inputs, each in [0, 1]."""

    social_weight: float = Field(..., ge=0, le=1)
    taste_alignment: float = Field(..., ge=0, le=1)
    contextual_match: float = Field(..., ge=0, le=1)


class TrustContext(SourceWeights):
    """Ephemeral per-item trust bundle; never persisted."""

    overall_trust_score: float = Field(..., ge=0, le=10)


class FeedCandidate(BaseModel):
    """Content item tagged with the source that surfaced it."""

    item: ContentItem
    provenance: Provenance
    trust_context: Optional[TrustContext] = None

    @property
    def dedup_key(self) -> str:
        return self.item.dedup_key

    @property
    def sort_timestamp(self) -> datetime:
        return self.item.sort_timestamp

    @property
    def trust_score(self) -> float:
        return self.trust_context.overall_trust_score if self.trust_context else 0.0


class CandidatePool(BaseModel):
    """Deduplicated candidates plus provenance keyed by dedup key."""

    candidates: List[FeedCandidate] = Field(default_factory=list)
    provenance: Dict[str, Provenance] = Field(default_factory=dict)
    failed_sources: List[str] = Field(default_factory=list)


# =============================================================================
# Taste Alignment Models
# =============================================================================


class RatingRecord(BaseModel):
    """One entry of a user's rating history."""

    recommendation_id: str
    restaurant_id: str
    cuisine_type: Optional[str] = None
    overall_rating: Optional[float] = None
    occasion: Optional[str] = None
    meal_type: Optional[str] = None
    created_at: Optional[datetime] = None


class SharedDataPoints(BaseModel):
    """Evidence two users share, driving the confidence level."""

    shared_restaurants: int = 0
    shared_cuisines: List[str] = Field(default_factory=list)
    total_user_ratings: int = 0
    total_compared_ratings: int = 0


class CorrelationData(BaseModel):
    """Raw correlation sub-scores, each in [-1, 1]."""

    cuisine_correlation: float = Field(default=0.0, ge=-1, le=1)
    rating_correlation: float = Field(default=0.0, ge=-1, le=1)
    context_correlation: float = Field(default=0.0, ge=-1, le=1)


class TasteAlignmentResult(BaseModel):
    """Cached similarity between an ordered pair of users."""

    user_id: str
    compared_user_id: str
    similarity_score: float = Field(..., ge=0, le=1)
    confidence_level: float = Field(..., ge=0, le=1)
    shared_preferences: List[str] = Field(default_factory=list)
    divergent_preferences: List[str] = Field(default_factory=list)
    correlation_data: CorrelationData = Field(default_factory=CorrelationData)
    shared_restaurants: int = 0
    shared_cuisines: List[str] = Field(default_factory=list)
    last_calculated: datetime
    calculation_version: str


ContextKey = Tuple[Optional[str], Optional[str]]


# =============================================================================
# Interaction Models
# =============================================================================


class InteractionStatus(BaseModel):
    """Recommendation ids the caller has liked, saved, or reshared."""

    liked_ids: List[str] = Field(default_factory=list)
    saved_ids: List[str] = Field(default_factory=list)
    reshared_ids: List[str] = Field(default_factory=list)


class ToggleResult(BaseModel):
    """Outcome of flipping a like/save membership."""

    active: bool
    new_count: int


# =============================================================================
# API Models (External)
# =============================================================================


class WireModel(BaseModel):
    """Wire models accept field names and serialize with client aliases."""

    model_config = ConfigDict(populate_by_name=True)


class FormattedAuthor(WireModel):
    id: str
    name: str
    avatar: str
    reputation: float
    is_following: bool = Field(default=False, alias="isFollowing")
    social_distance: int = Field(default=1, alias="socialDistance")


class FormattedProfile(WireModel):
    id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    reputation_score: Optional[float] = None


class FormattedLocation(WireModel):
    restaurant_id: Optional[str] = None
    name: str
    address: str = ""
    city: str = ""


class FormattedPhoto(WireModel):
    url: str
    ipfs_hash: Optional[str] = Field(default=None, alias="ipfsHash")


class FormattedEngagement(WireModel):
    saves: int = 0
    upvotes: int = 0
    comments: int = 0
    reshares: int = 0


class FormattedRecommendation(WireModel):
    """Recommendation card."""

    type: Literal["recommendation"] = "recommendation"
    id: str
    title: str
    content: str
    overall_rating: float
    location: FormattedLocation
    author: FormattedAuthor
    category: str
    photos: List[FormattedPhoto] = Field(default_factory=list)
    engagement: FormattedEngagement
    created_at: datetime = Field(..., alias="createdAt")
    tags: List[str] = Field(default_factory=list)
    is_bookmarked: bool = Field(default=False, alias="isBookmarked")
    has_upvoted: bool = Field(default=False, alias="hasUpvoted")
    has_reshared: bool = Field(default=False, alias="hasReshared")
    aspects: Optional[RestaurantAspects] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    source: Provenance
    trust_context: Optional[TrustContext] = None


class FormattedReshare(FormattedRecommendation):
    """Recommendation card wrapped with resharer identity."""

    type: Literal["reshare"] = "reshare"  # type: ignore[assignment]
    reshare_id: str
    reshare_user_id: str
    reshare_comment: Optional[str] = None
    reshare_created_at: datetime
    resharer: FormattedProfile


class FormattedListRestaurant(WireModel):
    id: str
    name: str
    cuisine_type: str
    location: str = ""
    image_url: Optional[str] = None
    average_rating: float = 0.0


class FormattedList(WireModel):
    """Curated list card."""

    type: Literal["list"] = "list"
    id: str
    title: str
    description: str
    category: str
    city: str
    tags: List[str] = Field(default_factory=list)
    best_for: str
    cover_image_url: Optional[str] = None
    cover_image_source: Optional[str] = None
    creator: FormattedProfile
    restaurants: List[FormattedListRestaurant] = Field(default_factory=list)
    restaurant_count: int
    created_at: datetime
    like_count: int = 0
    save_count: int = 0
    source: Provenance
    trust_context: Optional[TrustContext] = None


class FormattedRequest(WireModel):
    """Discovery request card."""

    type: Literal["request"] = "request"
    id: str
    title: str
    description: str
    location: Optional[str] = None
    cuisine_type: Optional[str] = None
    occasion: Optional[str] = None
    budget_range: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    bounty_amount: float = 0.0
    status: RequestStatus
    response_count: int = 0
    view_count: int = 0
    created_at: datetime
    expires_at: Optional[datetime] = None
    creator: FormattedProfile
    source: Provenance
    trust_context: Optional[TrustContext] = None


FormattedItem = Annotated[
    Union[FormattedRecommendation, FormattedReshare, FormattedList, FormattedRequest],
    Field(discriminator="type"),
]


class FeedMetadata(BaseModel):
    """Summary of a generated feed."""

    total_items: int
    generated_at: datetime


class FeedResponse(BaseModel):
    """Feed endpoint response."""

    success: bool = True
    feed: List[FormattedItem] = Field(..., description="Ranked feed items")
    metadata: FeedMetadata


class EngagementResponse(BaseModel):
    """Like/save toggle endpoint response."""

    success: bool = True
    action: str
    is_liked: Optional[bool] = None
    is_saved: Optional[bool] = None
    new_count: int = Field(..., serialization_alias="newCount")


class BatchAlignmentRequest(BaseModel):
    """Targets for a batch taste-alignment lookup."""

    user_ids: List[str] = Field(..., min_length=1, max_length=100)


class BatchAlignmentResponse(BaseModel):
    results: Dict[str, TasteAlignmentResult]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, object] = Field(..., description="Error details")
