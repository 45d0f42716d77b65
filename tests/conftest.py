"""
Pytest Configuration
Deterministic clock, raw-record builders and fake collaborators for the depth service.
"""

import asyncio
import pytest
from datetime import datetime, timezone
from typing import List, Optional

from depthboard.observability.metrics import get_registry
from depthboard.schemas.market import RawListing, RawOffer
from depthboard.util.cache import TTLCache
from depthboard.util.clock import get_deterministic_clock

WEI = 10 ** 18
FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def eth_to_wei(amount: str) -> str:
    """Exact wei string for a decimal ETH amount given as text, e.g. '1.05'."""
    whole, _, frac = amount.partition(".")
    frac = (frac + "0" * 18)[:18]
    return str(int(whole) * WEI + int(frac or "0"))


def make_listing(eth: Optional[str], decimals: int = 18) -> RawListing:
    if eth is None:
        return RawListing.model_validate({"order_hash": "0xlisting"})
    return RawListing.model_validate({
        "order_hash": "0xlisting",
        "price": {"current": {"currency": "ETH", "decimals": decimals, "value": eth_to_wei(eth)}},
    })


def make_offer(total_eth: Optional[str], remaining_quantity: Optional[int] = None, decimals: int = 18) -> RawOffer:
    payload = {"order_hash": "0xoffer"}
    if total_eth is not None:
        payload["price"] = {"currency": "WETH", "decimals": decimals, "value": eth_to_wei(total_eth)}
    if remaining_quantity is not None:
        payload["remaining_quantity"] = remaining_quantity
    return RawOffer.model_validate(payload)


class FakeMarketplace:
    """In-memory marketplace provider that records calls."""

    def __init__(self, listings: List[RawListing] = None, offers: List[RawOffer] = None):
        self.listings = listings or []
        self.offers = offers or []
        self.calls = []
        self.fail_with: Optional[Exception] = None

    async def get_listings(self, collection_slug: str, limit: int) -> List[RawListing]:
        self.calls.append(("listings", collection_slug, limit))
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.listings)

    async def get_offers(self, collection_slug: str, limit: int) -> List[RawOffer]:
        self.calls.append(("offers", collection_slug, limit))
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.offers)


@pytest.fixture
def deterministic_time():
    """Provide deterministic time for tests."""
    clock = get_deterministic_clock()
    clock.freeze(at=FIXED_NOW.timestamp())

    yield clock

    clock.unfreeze()


@pytest.fixture
def cache(deterministic_time) -> TTLCache:
    return TTLCache(clock=deterministic_time.time)


@pytest.fixture
def marketplace() -> FakeMarketplace:
    return FakeMarketplace()


@pytest.fixture(autouse=True)
def reset_metrics():
    get_registry().reset()
    yield
    get_registry().reset()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "deterministic: marks tests as deterministic")
