"""Tests for the FastAPI surface in eventrec.api."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from eventrec.api import create_app
from eventrec.profile_cache import ProfileCache

from conftest import make_ranker


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def client(store) -> TestClient:
    return TestClient(create_app(make_ranker(store), store))


def _ids(response) -> list[int]:
    return [item["id"] for item in response.json()]


# ---------------------------------------------------------------------------
# GET recommendations
# ---------------------------------------------------------------------------


class TestRecommendations:
    @pytest.mark.parametrize(
        "path", ["/recommendations/1", "/api/users/1/recommendations"]
    )
    def test_both_routes_serve_recommendations(self, client, path: str) -> None:
        response = client.get(path)
        assert response.status_code == 200
        assert len(response.json()) == 6
        assert _ids(response)[0] == 1

    def test_payload_uses_camel_case(self, client) -> None:
        [first] = client.get("/recommendations/1", params={"limit": 1}).json()
        assert {"isLive", "recommendationScore", "matchReasons"} <= first.keys()
        assert set(first["matchReasons"]) == {
            "genre",
            "type",
            "artist",
            "environment",
            "duration",
            "timeOfDay",
            "live",
        }
        assert first["matchReasons"]["genre"] is True
        assert first["tags"] == ["live", "rock"]

    def test_scores_non_increasing(self, client) -> None:
        scores = [
            item["recommendationScore"] for item in client.get("/recommendations/1").json()
        ]
        assert scores == sorted(scores, reverse=True)

    def test_limit(self, client) -> None:
        assert len(client.get("/recommendations/1", params={"limit": 2}).json()) == 2

    @pytest.mark.parametrize("limit", ["0", "-1", "51", "many"])
    def test_bad_limit_is_400(self, client, limit: str) -> None:
        response = client.get("/recommendations/1", params={"limit": limit})
        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"

    def test_cold_start_orders_by_popularity(self, client) -> None:
        response = client.get("/recommendations/2")
        assert _ids(response) == [3, 2, 1, 4, 5, 6]
        assert response.json()[0]["recommendationScore"] == 2

    @pytest.mark.parametrize("user_id", ["abc", "0", "1.5"])
    def test_malformed_user_id_is_400(self, client, user_id: str) -> None:
        response = client.get(f"/recommendations/{user_id}")
        assert response.status_code == 400
        assert "message" in response.json()

    def test_unknown_user_is_404(self, client) -> None:
        response = client.get("/recommendations/999")
        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    def test_store_failure_is_503(self, store) -> None:
        ranker = make_ranker(store)
        ranker._interaction_store = MagicMock()
        ranker._interaction_store.get_history_for_user.side_effect = RuntimeError("db down")
        client = TestClient(create_app(ranker, store))
        response = client.get("/recommendations/1")
        assert response.status_code == 503
        assert response.json() == {"message": "Error getting recommendations"}

    def test_unexpected_error_is_500(self, store) -> None:
        ranker = MagicMock()
        ranker.recommend.side_effect = TypeError("boom")
        client = TestClient(create_app(ranker, store), raise_server_exceptions=False)
        response = client.get("/recommendations/1")
        assert response.status_code == 500
        assert response.json() == {"message": "Server error"}


# ---------------------------------------------------------------------------
# POST reactions
# ---------------------------------------------------------------------------


class TestReactions:
    def test_records_reaction(self, client, store) -> None:
        response = client.post(
            "/api/reactions", json={"userId": 2, "eventId": 1, "type": "love"}
        )
        assert response.status_code == 201
        body = response.json()
        assert (body["userId"], body["eventId"], body["type"]) == (2, 1, "love")
        assert store.get_interaction_count(1) == 1

    def test_reacted_event_no_longer_recommended(self, client) -> None:
        client.post("/api/reactions", json={"userId": 2, "eventId": 1, "type": "love"})
        assert 1 not in _ids(client.get("/recommendations/2"))

    def test_unknown_user_is_404(self, client) -> None:
        response = client.post(
            "/api/reactions", json={"userId": 999, "eventId": 1, "type": "love"}
        )
        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    def test_unknown_event_is_404(self, client) -> None:
        response = client.post(
            "/api/reactions", json={"userId": 2, "eventId": 999, "type": "love"}
        )
        assert response.status_code == 404
        assert response.json() == {"message": "Event not found"}

    def test_malformed_body_is_400(self, client) -> None:
        response = client.post("/api/reactions", json={"userId": "x", "type": ""})
        assert response.status_code == 400

    def test_reaction_invalidates_cached_profile(self, store) -> None:
        cache = ProfileCache(ttl_seconds=60)
        client = TestClient(
            create_app(make_ranker(store, profile_cache=cache), store, profile_cache=cache)
        )
        client.get("/recommendations/1")
        assert cache.get(1) is not None
        client.post("/api/reactions", json={"userId": 1, "eventId": 2, "type": "like"})
        assert cache.get(1) is None


# ---------------------------------------------------------------------------
# PATCH preferences / health
# ---------------------------------------------------------------------------


class TestPreferences:
    def test_update(self, client, store) -> None:
        response = client.patch("/api/users/2/preferences", json={"genres": ["jazz"]})
        assert response.status_code == 200
        assert response.json() == {"genres": ["jazz"], "favoriteArtists": []}
        assert store.get_user(2).preferences.genres == ["jazz"]

    def test_unknown_user_is_404(self, client) -> None:
        response = client.patch("/api/users/999/preferences", json={"genres": []})
        assert response.status_code == 404

    def test_malformed_user_id_is_400(self, client) -> None:
        response = client.patch("/api/users/abc/preferences", json={"genres": []})
        assert response.status_code == 400


def test_health(client) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}
