"""
MarketDepthService orchestration tests.
Cache hit/miss behavior, concurrent fetch and failure propagation.
"""

import asyncio
import pytest

from depthboard.errors import MarketDepthError, NetworkError
from depthboard.services.market_depth import MarketDepthService

from conftest import FIXED_NOW, FakeMarketplace, make_listing, make_offer


def make_service(marketplace, cache, **kwargs) -> MarketDepthService:
    return MarketDepthService(
        provider=marketplace,
        cache=cache,
        collection_slug="good-vibes-club",
        now=lambda: FIXED_NOW,
        **kwargs,
    )


@pytest.mark.asyncio
class TestMarketDepthService:

    async def test_miss_fetches_and_caches(self, marketplace, cache):
        marketplace.listings = [make_listing("1.05")]
        marketplace.offers = [make_offer("0.95")]
        service = make_service(marketplace, cache)

        snapshot = await service.get_market_depth()

        assert snapshot.spread == 0.1
        assert snapshot.spread_percent == 10.5
        assert snapshot.last_updated == "2024-05-01T12:00:00.000Z"
        assert await cache.get("market-depth-good-vibes-club") is snapshot

    async def test_fetch_limits(self, marketplace, cache):
        service = make_service(marketplace, cache)
        await service.get_market_depth()

        assert sorted(marketplace.calls) == [
            ("listings", "good-vibes-club", 100),
            ("offers", "good-vibes-club", 200),
        ]

    async def test_hit_returns_cached_without_fetching(self, marketplace, cache):
        service = make_service(marketplace, cache)
        first = await service.get_market_depth()
        marketplace.calls.clear()
        marketplace.listings = [make_listing("9")]

        second = await service.get_market_depth()

        assert second is first
        assert marketplace.calls == []

    async def test_recomputes_after_ttl(self, marketplace, cache, deterministic_time):
        service = make_service(marketplace, cache)
        await service.get_market_depth()
        marketplace.listings = [make_listing("2")]

        deterministic_time.advance(121)
        snapshot = await service.get_market_depth()

        assert snapshot.lowest_listing == 2.0

    async def test_custom_ttl(self, marketplace, cache, deterministic_time):
        service = make_service(marketplace, cache, ttl_seconds=5)
        first = await service.get_market_depth()
        deterministic_time.advance(6)
        assert await service.get_market_depth() is not first

    async def test_cached_value_served_verbatim(self, marketplace, cache):
        sentinel = {"cached": True}
        await cache.set("market-depth-good-vibes-club", sentinel, 120)
        service = make_service(marketplace, cache)

        assert await service.get_market_depth() is sentinel
        assert marketplace.calls == []

    async def test_provider_failure_wrapped(self, marketplace, cache):
        marketplace.fail_with = NetworkError("connection reset")
        service = make_service(marketplace, cache)

        with pytest.raises(MarketDepthError) as exc_info:
            await service.get_market_depth()

        assert exc_info.value.message == "Failed to fetch market depth"
        assert isinstance(exc_info.value.__cause__, NetworkError)
        assert cache.get_stats()["total_entries"] == 0

    async def test_cache_failure_wrapped(self, marketplace):
        class BrokenCache:
            async def get(self, key):
                raise ConnectionError("cache down")

            async def set(self, key, value, ttl_seconds):
                raise AssertionError("not reached")

        service = make_service(marketplace, BrokenCache())
        with pytest.raises(MarketDepthError):
            await service.get_market_depth()

    async def test_fetches_run_concurrently(self, cache):
        started = []
        release = asyncio.Event()

        class GatedMarketplace(FakeMarketplace):
            async def get_listings(self, collection_slug, limit):
                started.append("listings")
                await release.wait()
                return []

            async def get_offers(self, collection_slug, limit):
                started.append("offers")
                await release.wait()
                return []

        service = make_service(GatedMarketplace(), cache)
        task = asyncio.ensure_future(service.get_market_depth())
        for _ in range(5):
            await asyncio.sleep(0)

        assert sorted(started) == ["listings", "offers"]
        release.set()
        snapshot = await task
        assert snapshot.listings == ()

