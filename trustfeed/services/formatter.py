"""
Presentation formatter.
Maps ranked candidates onto the wire shapes consumed by clients.
"""
from typing import List, Optional

from trustfeed.models.schemas import (
    AuthorProfile,
    DiscoveryRequest,
    FeedCandidate,
    FoodList,
    FormattedAuthor,
    FormattedEngagement,
    FormattedItem,
    FormattedList,
    FormattedListRestaurant,
    FormattedLocation,
    FormattedPhoto,
    FormattedProfile,
    FormattedRecommendation,
    FormattedRequest,
    FormattedReshare,
    InteractionStatus,
    Recommendation,
    Reshare,
)


DEFAULT_AVATAR = "/default-avatar.png"
UNKNOWN_USER = "Unknown User"
DEFAULT_REPUTATION = 5.0


class FeedFormatter:
    """Renders every content kind, with the caller's interaction flags."""

    def __init__(self, ipfs_gateway: str = "https://gateway.pinata.cloud/ipfs/") -> None:
        self._ipfs_gateway = ipfs_gateway

    def format(
        self,
        candidates: List[FeedCandidate],
        interactions: Optional[InteractionStatus] = None,
    ) -> List[FormattedItem]:
        """Format candidates in order."""
        status = interactions or InteractionStatus()
        liked = set(status.liked_ids)
        saved = set(status.saved_ids)
        reshared = set(status.reshared_ids)

        formatted: List[FormattedItem] = []
        for candidate in candidates:
            item = candidate.item
            if isinstance(item, Reshare):
                card = self._format_reshare(candidate, item)
            elif isinstance(item, Recommendation):
                card = self._format_recommendation(candidate, item)
            elif isinstance(item, FoodList):
                card = self._format_list(candidate, item)
            elif isinstance(item, DiscoveryRequest):
                card = self._format_request(candidate, item)
            else:
                raise TypeError(f"Unsupported content item: {type(item).__name__}")

            if isinstance(card, FormattedRecommendation):
                card.has_upvoted = card.id in liked
                card.is_bookmarked = card.id in saved
                card.has_reshared = card.id in reshared

            formatted.append(card)
        return formatted

    # -------------------------------------------------------------------------
    # Per-kind renderers
    # -------------------------------------------------------------------------

    def _recommendation_fields(self, candidate: FeedCandidate, rec: Recommendation) -> dict:
        restaurant = rec.restaurant
        return {
            "id": rec.id,
            "title": rec.title,
            "content": rec.content,
            "overall_rating": rec.overall_rating,
            "location": FormattedLocation(
                restaurant_id=restaurant.id if restaurant else None,
                name=restaurant.name if restaurant else "Unknown Restaurant",
                address=(restaurant.formatted_address or restaurant.address or "") if restaurant else "",
                city=(restaurant.city or "") if restaurant else "",
            ),
            "author": self._author(rec.author),
            "category": (restaurant.cuisine_type or "") if restaurant else "",
            "photos": self.transform_photos(rec.photos, rec.image_url),
            "engagement": FormattedEngagement(
                saves=rec.engagement.saves,
                upvotes=rec.engagement.likes,
                comments=rec.engagement.comments,
                reshares=rec.engagement.reshares,
            ),
            "created_at": rec.created_at,
            "tags": list(rec.context_tags),
            "aspects": rec.aspects,
            "is_edited": rec.is_edited,
            "edited_at": rec.edited_at,
            "source": candidate.provenance,
            "trust_context": candidate.trust_context,
        }

    def _format_recommendation(
        self, candidate: FeedCandidate, rec: Recommendation
    ) -> FormattedRecommendation:
        return FormattedRecommendation(**self._recommendation_fields(candidate, rec))

    def _format_reshare(self, candidate: FeedCandidate, reshare: Reshare) -> FormattedReshare:
        return FormattedReshare(
            **self._recommendation_fields(candidate, reshare.recommendation),
            reshare_id=reshare.id,
            reshare_user_id=reshare.resharer.id,
            reshare_comment=reshare.comment,
            reshare_created_at=reshare.reshared_at,
            resharer=self._profile(reshare.resharer),
        )

    def _format_list(self, candidate: FeedCandidate, food_list: FoodList) -> FormattedList:
        return FormattedList(
            id=food_list.id,
            title=food_list.title,
            description=food_list.description,
            category=food_list.category,
            city=food_list.city,
            tags=list(food_list.tags),
            best_for=food_list.best_for,
            cover_image_url=food_list.cover_image_url,
            cover_image_source=food_list.cover_image_source,
            creator=self._profile(food_list.author),
            restaurants=[
                FormattedListRestaurant(
                    id=r.id,
                    name=r.name,
                    cuisine_type=r.cuisine_type or "Restaurant",
                    location=r.formatted_address or r.address or "",
                    image_url=r.image_url,
                    average_rating=r.average_rating,
                )
                for r in food_list.restaurants
            ],
            restaurant_count=len(food_list.restaurants),
            created_at=food_list.created_at,
            like_count=food_list.engagement.likes,
            save_count=food_list.engagement.saves,
            source=candidate.provenance,
            trust_context=candidate.trust_context,
        )

    def _format_request(
        self, candidate: FeedCandidate, request: DiscoveryRequest
    ) -> FormattedRequest:
        return FormattedRequest(
            id=request.id,
            title=request.title,
            description=request.description,
            location=request.location,
            cuisine_type=request.cuisine_type,
            occasion=request.occasion,
            budget_range=request.budget_range,
            dietary_restrictions=list(request.dietary_restrictions),
            bounty_amount=request.bounty_amount,
            status=request.status,
            response_count=request.response_count,
            view_count=request.view_count,
            created_at=request.created_at,
            expires_at=request.expires_at,
            creator=self._profile(request.author),
            source=candidate.provenance,
            trust_context=candidate.trust_context,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _author(author: AuthorProfile) -> FormattedAuthor:
        reputation = author.reputation_score
        if reputation is None:
            reputation = author.trust_score
        return FormattedAuthor(
            id=author.id,
            name=author.display_name or author.username or UNKNOWN_USER,
            avatar=author.avatar_url or DEFAULT_AVATAR,
            reputation=DEFAULT_REPUTATION if reputation is None else reputation,
        )

    @staticmethod
    def _profile(profile: AuthorProfile) -> FormattedProfile:
        return FormattedProfile(
            id=profile.id,
            username=profile.username or UNKNOWN_USER,
            display_name=profile.display_name or profile.username or UNKNOWN_USER,
            avatar_url=profile.avatar_url,
            reputation_score=profile.reputation_score,
        )

    def transform_photos(
        self, photos: List[str], image_url: Optional[str] = None
    ) -> List[FormattedPhoto]:
        """Expand bare IPFS hashes through the gateway; keep full URLs."""
        if photos:
            return [
                FormattedPhoto(url=photo)
                if photo.startswith("http")
                else FormattedPhoto(url=f"{self._ipfs_gateway}{photo}", ipfs_hash=photo)
                for photo in photos
            ]
        if image_url:
            return [FormattedPhoto(url=image_url)]
        return []
