"""
Unit tests for the trust scorer.
"""
import pytest

from trustfeed.models.schemas import (
    DiscoveryRequest,
    FeedCandidate,
    FoodList,
    Provenance,
    Reshare,
    SourceWeights,
)
from trustfeed.services.trust import TRUST_WEIGHTS, TrustScorer, compute_trust_score


class TestComputeTrustScore:
    @pytest.mark.parametrize(
        "provenance, author_trust, expected",
        [
            (Provenance.OWN, 10.0, 10.0),
            (Provenance.OWN, None, 5.0),
            (Provenance.FOLLOWING, None, 3.55),
            (Provenance.TASTE_SIMILARITY, 8.0, 5.6),
            (Provenance.TRENDING, 5.0, 3.15),
        ],
    )
    def test_weighted_score(self, provenance, author_trust, expected):
        score = compute_trust_score(TRUST_WEIGHTS[provenance], author_trust)
        assert score == pytest.approx(expected)

    @pytest.mark.parametrize("provenance", list(Provenance))
    @pytest.mark.parametrize("author_trust", [0.0, 0.01, 5.0, 9.99, 10.0, None])
    def test_bounds(self, provenance, author_trust):
        score = compute_trust_score(TRUST_WEIGHTS[provenance], author_trust)
        assert 0.0 <= score <= 10.0

    def test_zero_trust_author_scores_zero(self):
        weights = SourceWeights(social_weight=1.0, taste_alignment=1.0, contextual_match=1.0)
        assert compute_trust_score(weights, 0.0) == 0.0


class TestTrustScorer:
    def test_score_uses_provenance_weights(self, make_candidate):
        candidate = make_candidate("r1", Provenance.FOLLOWING)

        context = TrustScorer().score(candidate)

        assert context.social_weight == 0.8
        assert context.taste_alignment == 0.7
        assert context.contextual_match == 0.6
        assert context.overall_trust_score == pytest.approx(3.55)

    def test_reshare_uses_original_author(self, make_recommendation, make_profile, now):
        reshare = Reshare(
            id="rs1",
            resharer=make_profile("user_low", 1.0),
            reshared_at=now,
            recommendation=make_recommendation("r1", author_id="user_high", trust_score=10.0),
        )
        candidate = FeedCandidate(item=reshare, provenance=Provenance.OWN)

        assert TrustScorer().score(candidate).overall_trust_score == pytest.approx(10.0)

    def test_list_and_request_use_creator(self, make_profile, now):
        creator = make_profile("user_creator", 6.0)
        food_list = FeedCandidate(
            item=FoodList(id="l1", author=creator, created_at=now),
            provenance=Provenance.OWN,
        )
        request = FeedCandidate(
            item=DiscoveryRequest(id="q1", author=creator, created_at=now),
            provenance=Provenance.OWN,
        )

        scorer = TrustScorer()
        assert scorer.score(food_list).overall_trust_score == pytest.approx(6.0)
        assert scorer.score(request).overall_trust_score == pytest.approx(6.0)

    def test_score_all_attaches_context(self, make_candidate):
        candidates = [
            make_candidate("r1", Provenance.OWN),
            make_candidate("r2", Provenance.TRENDING),
        ]

        TrustScorer().score_all(candidates)

        assert all(c.trust_context is not None for c in candidates)
        assert candidates[0].trust_score > candidates[1].trust_score

    def test_unknown_item_kind_rejected(self):
        candidate = FeedCandidate.model_construct(item=object(), provenance=Provenance.OWN)

        with pytest.raises(TypeError):
            TrustScorer().score(candidate)
