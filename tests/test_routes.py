"""
HTTP surface tests using FastAPI's TestClient with overridden dependencies.
"""

import pytest
from fastapi.testclient import TestClient

from depthboard.errors import NetworkError
from depthboard.main import create_app
from depthboard.services.market_depth import MarketDepthService
from depthboard.state import get_depth_cache, get_market_depth_service

from conftest import FIXED_NOW, make_listing, make_offer


class BrokenCache:
    """Cache whose every operation fails."""

    async def delete(self, key):
        raise RuntimeError("cache backend down")

    async def clear(self):
        raise RuntimeError("cache backend down")

    def get_stats(self):
        raise RuntimeError("cache backend down")


@pytest.fixture
def app(marketplace, cache):
    application = create_app()
    service = MarketDepthService(
        provider=marketplace,
        cache=cache,
        collection_slug="good-vibes-club",
        now=lambda: FIXED_NOW,
    )
    application.dependency_overrides[get_market_depth_service] = lambda: service
    application.dependency_overrides[get_depth_cache] = lambda: cache
    return application


@pytest.fixture
def client(app):
    # No context manager: skip startup hooks (log files, real OpenSea client)
    return TestClient(app, raise_server_exceptions=False)


class TestMarketDepthRoute:

    def test_success_payload(self, client, marketplace):
        marketplace.listings = [make_listing("1.05"), make_listing("1.2")]
        marketplace.offers = [make_offer("0.95"), make_offer("1.8", remaining_quantity=2)]

        response = client.get("/api/market-depth")

        assert response.status_code == 200
        assert response.json() == {
            "listings": [{"price": 1.05, "depth": 1}, {"price": 1.2, "depth": 1}],
            "offers": [{"price": 0.95, "depth": 1}, {"price": 0.9, "depth": 2}],
            "spread": 0.1,
            "spreadPercent": 10.5,
            "lowestListing": 1.05,
            "highestOffer": 0.95,
            "totalListingDepth": 2,
            "totalOfferDepth": 3,
            "lastUpdated": "2024-05-01T12:00:00.000Z",
        }

    def test_second_request_served_from_cache(self, client, marketplace):
        client.get("/api/market-depth")
        calls = len(marketplace.calls)

        response = client.get("/api/market-depth")

        assert response.status_code == 200
        assert len(marketplace.calls) == calls

    def test_failure_is_generic_500(self, client, marketplace):
        marketplace.fail_with = NetworkError("upstream exploded")

        response = client.get("/api/market-depth")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch market depth"}


class TestCacheRoutes:

    def test_stats(self, client, marketplace):
        client.get("/api/market-depth")
        response = client.get("/api/refresh")
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"totalEntries", "expiredEntries", "totalSize"}
        assert body["totalEntries"] == 1
        assert body["expiredEntries"] == 0
        assert body["totalSize"].endswith(" bytes")
        assert int(body["totalSize"].split()[0]) > 0

    def test_refresh_single_key(self, client, cache):
        client.get("/api/market-depth")
        response = client.post("/api/refresh", params={"key": "market-depth-good-vibes-club"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert "market-depth-good-vibes-club" in body["message"]
        assert cache.get_stats()["total_entries"] == 0

    def test_refresh_all(self, client, cache):
        client.get("/api/market-depth")
        response = client.post("/api/refresh")
        assert response.json()["message"] == "All cache cleared successfully"
        assert cache.get_stats()["total_entries"] == 0

    def test_refresh_failure_is_500(self, app, client):
        app.dependency_overrides[get_depth_cache] = lambda: BrokenCache()

        response = client.post("/api/refresh")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to refresh cache"}

    def test_stats_failure_is_500(self, app, client):
        app.dependency_overrides[get_depth_cache] = lambda: BrokenCache()

        response = client.get("/api/refresh")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to get cache stats"}

    def test_cleanup_expired(self, client, deterministic_time):
        client.get("/api/market-depth")
        deterministic_time.advance(500)

        response = client.get("/api/admin/cleanup-cache")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["deletedCount"] == 1


class TestOpsRoutes:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_metrics_text(self, client):
        client.get("/api/market-depth")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "market_depth_aggregations" in response.text

    def test_unknown_route_structured_404(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "HTTP_ERROR"

    def test_method_not_allowed(self, client):
        response = client.delete("/api/refresh")
        assert response.status_code == 405
        assert response.json()["error"] == "HTTP_ERROR"

    def test_unexpected_error_is_internal_500(self, app, client):
        @app.get("/api/boom")
        async def boom():
            raise RuntimeError("secret token leaked")

        response = client.get("/api/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
