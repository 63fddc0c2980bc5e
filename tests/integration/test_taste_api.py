"""
Integration tests for the taste alignment API.
"""
import pytest
from fastapi.testclient import TestClient

ALICE = {"X-User-ID": "user_alice"}


class TestTasteAlignmentAPI:
    def test_alignment_with_shared_history(self, test_client: TestClient):
        response = test_client.get("/v1/taste-alignment/user_dave", headers=ALICE)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "user_alice"
        assert data["compared_user_id"] == "user_dave"
        assert data["shared_restaurants"] == 3
        assert data["calculation_version"] == "2.0.0"
        # 3 shared restaurants (0.2) + fewer than 5 ratings each (0.1)
        assert data["confidence_level"] == pytest.approx(0.3)
        assert 0.9 < data["similarity_score"] <= 1.0
        assert data["correlation_data"]["rating_correlation"] == pytest.approx(1.0)
        assert data["shared_preferences"] == ["Italian", "Japanese"]
        assert data["divergent_preferences"] == []

    def test_insufficient_data_is_neutral(self, test_client: TestClient):
        data = test_client.get("/v1/taste-alignment/user_erin", headers=ALICE).json()

        assert data["similarity_score"] == 0.5
        assert data["confidence_level"] == 0.1
        assert data["shared_restaurants"] == 0

    def test_self_comparison_not_applicable(self, test_client: TestClient):
        response = test_client.get("/v1/taste-alignment/user_alice", headers=ALICE)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_APPLICABLE"

    def test_cached_result_is_reused(self, test_client: TestClient):
        first = test_client.get("/v1/taste-alignment/user_dave", headers=ALICE).json()
        second = test_client.get("/v1/taste-alignment/user_dave", headers=ALICE).json()

        assert first["last_calculated"] == second["last_calculated"]

    def test_invalidate_cache(self, test_client: TestClient):
        test_client.get("/v1/taste-alignment/user_dave", headers=ALICE)
        test_client.get("/v1/taste-alignment/user_alice", headers={"X-User-ID": "user_dave"})

        response = test_client.delete("/v1/taste-alignment/cache", headers=ALICE)

        assert response.status_code == 200
        assert response.json() == {"success": True, "invalidated": 2}

    def test_batch_alignment(self, test_client: TestClient):
        response = test_client.post(
            "/v1/taste-alignment/batch",
            json={"user_ids": ["user_dave", "user_erin", "user_alice", "user_dave"]},
            headers=ALICE,
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert set(results) == {"user_dave", "user_erin"}
        assert results["user_erin"]["similarity_score"] == 0.5

    def test_batch_requires_targets(self, test_client: TestClient):
        response = test_client.post(
            "/v1/taste-alignment/batch", json={"user_ids": []}, headers=ALICE
        )

        assert response.status_code == 422

    def test_requires_identity(self, test_client: TestClient):
        response = test_client.get("/v1/taste-alignment/user_dave")

        assert response.status_code == 401
