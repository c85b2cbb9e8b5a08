"""
Integration tests for the Discovery API.
"""
from fastapi.testclient import TestClient

from discovery.api.dependencies import get_content_repository, get_repository_circuit_breaker
from discovery.core.circuit_breaker import CircuitBreaker, CircuitState
from discovery.main import app


class TestSearchAPI:
    def test_search_anchoring(self, test_client: TestClient):
        """Test the canonical single-result query."""
        response = test_client.get("/v1/search", params={"q": "anchoring"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["results"][0]["item"]["title"] == "Anchoring Bias"
        assert data["results"][0]["relevance_score"] > 20
        assert set(data["results"][0]["matched_fields"]) == {"title", "tags"}

    def test_search_with_filters(self, test_client: TestClient):
        response = test_client.get(
            "/v1/search",
            params=[
                ("category", "behavioral-economics"),
                ("category", "emotional-triggers"),
                ("difficulty", "intermediate"),
            ],
        )

        assert response.status_code == 200
        ids = [r["item"]["id"] for r in response.json()["results"]]
        assert ids == ["loss-aversion", "scarcity"]

    def test_search_rejects_unknown_category(self, test_client: TestClient):
        response = test_client.get("/v1/search", params={"category": "astrology"})

        assert response.status_code == 422

    def test_suggestions(self, test_client: TestClient):
        response = test_client.get("/v1/search/suggestions", params={"q": "pric"})

        assert response.status_code == 200
        assert response.json() == {"suggestions": ["pricing"]}

    def test_short_suggestion_query(self, test_client: TestClient):
        response = test_client.get("/v1/search/suggestions", params={"q": "p"})

        assert response.json() == {"suggestions": []}

    def test_popular_terms(self, test_client: TestClient):
        response = test_client.get("/v1/search/popular-terms")

        assert response.status_code == 200
        assert "anchoring bias" in response.json()["terms"]

    def test_clear_cache(self, test_client: TestClient):
        test_client.get("/v1/search", params={"q": "pricing"})

        response = test_client.delete("/v1/search/cache")

        assert response.status_code == 204
        ready = test_client.get("/health/ready").json()
        assert ready["search_cache"]["entries"] == 0

    def test_repository_outage_returns_503(self, test_client: TestClient, failing_repo):
        app.dependency_overrides[get_content_repository] = lambda: failing_repo

        response = test_client.get("/v1/search", params={"q": "pricing"})

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "DISCOVERY_UNAVAILABLE"
        assert error["details"]["operation"] == "search"
        assert error["details"]["cause"].startswith("ConnectionError")


class TestRelatedAndRecommendationsAPI:
    def test_related_content(self, test_client: TestClient):
        response = test_client.get(
            "/v1/content/anchoring-bias/related", params={"limit": 3}
        )

        assert response.status_code == 200
        data = response.json()
        ids = [item["id"] for item in data["items"]]
        assert data["item_id"] == "anchoring-bias"
        assert len(ids) == 3
        assert "anchoring-bias" not in ids

    def test_related_unknown_item(self, test_client: TestClient):
        response = test_client.get("/v1/content/nope/related")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_cross_links(self, test_client: TestClient):
        response = test_client.get("/v1/content/loss-aversion/cross-links")

        assert response.status_code == 200
        urls = [link["url"] for link in response.json()["links"]]
        assert "/blog/pricing-page-redesign" in urls
        assert "/projects#proj-checkout" in urls

    def test_recommendations_for_reader(self, test_client: TestClient):
        response = test_client.get(
            "/v1/recommendations", params={"user_id": "user_reader", "limit": 5}
        )

        assert response.status_code == 200
        recommendations = response.json()["recommendations"]
        assert len(recommendations) == 5
        scores = [r["score"] for r in recommendations]
        assert scores == sorted(scores, reverse=True)
        item_ids = [r["item"]["id"] for r in recommendations if r["item"]]
        assert "anchoring-bias" not in item_ids

    def test_recommendations_include_references(self, test_client: TestClient):
        response = test_client.get(
            "/v1/recommendations", params={"category": "ux-psychology"}
        )

        types = {r["type"] for r in response.json()["recommendations"]}
        assert types == {"content", "blog-post", "project"}

    def test_limit_above_maximum_rejected(self, test_client: TestClient):
        response = test_client.get("/v1/recommendations", params={"limit": 500})

        assert response.status_code == 422


class TestTrackingAPI:
    def test_view_bookmark_completion_flow(self, test_client: TestClient):
        views = test_client.post(
            "/v1/content/scarcity/views",
            json={"session_duration": 40, "user_id": "user_reader"},
        )
        bookmark = test_client.post(
            "/v1/content/scarcity/bookmarks", json={"direction": "add"}
        )
        completion = test_client.post(
            "/v1/content/scarcity/completions", json={"read_time": 180}
        )

        assert views.status_code == 202
        assert views.json() == {"accepted": True}
        assert bookmark.status_code == 202
        assert completion.status_code == 202

        analytics = test_client.get("/v1/content/scarcity/analytics").json()
        assert analytics["view_count"] == 1
        assert analytics["bookmark_count"] == 1
        assert analytics["completion_count"] == 1
        assert analytics["popularity_score"] == 4

    def test_bookmark_removal_floor(self, test_client: TestClient):
        test_client.post("/v1/content/scarcity/bookmarks", json={"direction": "remove"})

        analytics = test_client.get("/v1/content/scarcity/analytics").json()
        assert analytics["bookmark_count"] == 0

    def test_invalid_tracking_payload(self, test_client: TestClient):
        response = test_client.post(
            "/v1/content/scarcity/completions", json={"read_time": -1}
        )

        assert response.status_code == 422

    def test_unknown_item_views_are_rejected(self, test_client: TestClient):
        response = test_client.post("/v1/content/ghost-item/views", json={})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
        assert test_client.get("/v1/trending").json() == {"items": []}
        assert test_client.get("/v1/content/ghost-item/analytics").status_code == 404

    def test_analytics_not_found(self, test_client: TestClient):
        response = test_client.get("/v1/content/never-viewed/analytics")

        assert response.status_code == 404

    def test_trending(self, test_client: TestClient):
        for _ in range(3):
            test_client.post("/v1/content/hicks-law/views", json={})
        test_client.post("/v1/content/scarcity/views", json={})

        response = test_client.get("/v1/trending", params={"limit": 1})

        assert response.status_code == 200
        items = response.json()["items"]
        assert [item["item_id"] for item in items] == ["hicks-law"]

    def test_each_test_starts_with_empty_analytics(self, test_client: TestClient):
        response = test_client.get("/v1/trending")

        assert response.json() == {"items": []}


class TestOpenAPI:
    def test_error_responses_are_documented(self, test_client: TestClient):
        paths = test_client.get("/openapi.json").json()["paths"]

        search = paths["/v1/search"]["get"]["responses"]
        views = paths["/v1/content/{item_id}/views"]["post"]["responses"]
        assert search["503"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/ErrorResponse"
        }
        assert "404" in views


class TestHealthAPI:
    def test_health(self, test_client: TestClient):
        assert test_client.get("/health").json() == {"status": "healthy"}

    def test_readiness_reports_circuit_breaker(self, test_client: TestClient):
        response = test_client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["circuit_breaker"] == {"name": "content_repository", "state": "closed"}
        assert data["search_cache"]["ttl_seconds"] == 600

    def test_readiness_degraded_when_breaker_open(self, test_client: TestClient):
        breaker = CircuitBreaker("content_repository", failure_threshold=1)
        breaker._state = CircuitState.OPEN
        app.dependency_overrides[get_repository_circuit_breaker] = lambda: breaker

        data = test_client.get("/health/ready").json()

        assert data["status"] == "degraded"
        assert data["circuit_breaker"]["state"] == "open"
