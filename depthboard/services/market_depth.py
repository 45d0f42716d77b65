"""
Market depth aggregation.

Turns raw marketplace listings and offers into a bucketed order book:
- listing price is per item; offer price.value is the TOTAL across
  remaining_quantity items and must be divided down to a per-item price
- prices are floored to 0.01 buckets
- listing depth counts listings, offer depth sums remaining quantity
- asks sorted ascending, bids descending
- spread / spreadPercent derived from best ask and best bid bucket

Zero doubles as "no data": a zero price is never a valid level, and
lowestListing / highestOffer are 0 when their side is empty.
"""

import asyncio
import math
import time
import logging
from datetime import datetime
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from depthboard.errors import MarketDepthError
from depthboard.observability.metrics import record_aggregation, record_market_depth_failure
from depthboard.protocols import DepthCache, MarketplaceProvider
from depthboard.schemas.market import (
    FixedPointPrice, MarketDepthSnapshot, PriceBucket, RawListing, RawOffer
)
from depthboard.util.clock import iso_timestamp, utc_now

logger = logging.getLogger(__name__)

BUCKET_SIZE = Decimal("0.01")
DEFAULT_TTL_SECONDS = 120
DEFAULT_LISTINGS_LIMIT = 100
DEFAULT_OFFERS_LIMIT = 200


def fixed_point_to_float(price: FixedPointPrice) -> float:
    # scale in Decimal: 18-decimal amounts overflow float's exact integer range,
    # and 10 ** decimals overflows float past 308
    amount = float(Decimal(price.value).scaleb(-price.decimals))
    return amount if math.isfinite(amount) else 0.0


def parse_listing_price(listing: RawListing) -> float:
    """Per-item price of a listing; 0 when the listing carries no price."""
    if listing.price is None:
        return 0.0
    return fixed_point_to_float(listing.price)


def parse_offer(offer: RawOffer) -> Tuple[float, int]:
    """
    Per-item price and quantity of an offer.

    A missing remaining_quantity means a single item. An explicit zero (or
    negative) quantity keeps the undivided price but reports the quantity as
    is, so the offer is dropped by the quantity > 0 filter.
    """
    if offer.price is None:
        return 0.0, 0
    total_value = fixed_point_to_float(offer.price)
    quantity = 1 if offer.remaining_quantity is None else offer.remaining_quantity
    price_per_unit = total_value / quantity if quantity > 0 else total_value
    return price_per_unit, quantity


def price_to_bucket(price: float) -> float:
    """
    Round price DOWN to the nearest 0.01.

    Floors the shortest decimal form of the float, so 0.29 stays 0.29
    rather than 0.28 (0.29 * 100 == 28.999999999999996 in binary).
    """
    return float(Decimal(str(price)).quantize(BUCKET_SIZE, rounding=ROUND_FLOOR))


def round_half_up(value: float, places: int) -> float:
    """Round to `places` decimals, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def _to_buckets(depths: Dict[float, int], descending: bool) -> Tuple[PriceBucket, ...]:
    ordered = sorted(depths.items(), key=lambda item: item[0], reverse=descending)
    return tuple(PriceBucket(price=price, depth=depth) for price, depth in ordered)


def aggregate_listings(listings: Iterable[RawListing]) -> Tuple[Tuple[PriceBucket, ...], List[float]]:
    """
    Bucket listings by floored price.

    Returns:
        (buckets ascending by price, valid per-item prices ascending)
    """
    prices = sorted(p for p in (parse_listing_price(listing) for listing in listings) if p > 0)

    depths: Dict[float, int] = {}
    for price in prices:
        bucket = price_to_bucket(price)
        depths[bucket] = depths.get(bucket, 0) + 1

    return _to_buckets(depths, descending=False), prices


def aggregate_offers(offers: Iterable[RawOffer]) -> Tuple[PriceBucket, ...]:
    """Bucket offers by floored per-item price, summing quantity. Descending by price."""
    depths: Dict[float, int] = {}
    for offer in offers:
        price_per_unit, quantity = parse_offer(offer)
        if price_per_unit > 0 and quantity > 0:
            bucket = price_to_bucket(price_per_unit)
            depths[bucket] = depths.get(bucket, 0) + quantity

    return _to_buckets(depths, descending=True)


def build_market_depth(
    listings: Iterable[RawListing],
    offers: Iterable[RawOffer],
    now: Optional[datetime] = None,
) -> MarketDepthSnapshot:
    """Aggregate raw listings and offers into a market depth snapshot."""
    listing_buckets, listing_prices = aggregate_listings(listings)
    offer_buckets = aggregate_offers(offers)

    lowest_listing = listing_prices[0] if listing_prices else 0.0
    highest_offer = offer_buckets[0].price if offer_buckets else 0.0
    spread = lowest_listing - highest_offer
    spread_percent = (spread / highest_offer) * 100 if highest_offer > 0 else 0.0

    return MarketDepthSnapshot(
        listings=listing_buckets,
        offers=offer_buckets,
        spread=round_half_up(spread, 3),
        spread_percent=round_half_up(spread_percent, 1),
        lowest_listing=lowest_listing,
        highest_offer=highest_offer,
        total_listing_depth=sum(b.depth for b in listing_buckets),
        total_offer_depth=sum(b.depth for b in offer_buckets),
        last_updated=iso_timestamp(now or utc_now()),
    )


class MarketDepthService:
    """Cache-backed market depth for one collection."""

    def __init__(
        self,
        provider: MarketplaceProvider,
        cache: DepthCache,
        collection_slug: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        listings_limit: int = DEFAULT_LISTINGS_LIMIT,
        offers_limit: int = DEFAULT_OFFERS_LIMIT,
        now: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.cache = cache
        self.collection_slug = collection_slug
        self.ttl_seconds = ttl_seconds
        self.listings_limit = listings_limit
        self.offers_limit = offers_limit
        self._now = now

    @property
    def cache_key(self) -> str:
        return f"market-depth-{self.collection_slug}"

    async def get_market_depth(self) -> MarketDepthSnapshot:
        """
        Cached snapshot if present, otherwise fetch, aggregate and cache.

        Raises:
            MarketDepthError: on any provider, cache or aggregation failure
        """
        try:
            cached = await self.cache.get(self.cache_key)
            if cached is not None:
                return cached
            return await self._compute_and_store()
        except Exception as e:
            record_market_depth_failure()
            logger.error(f"Error fetching market depth for {self.collection_slug}: {e}", exc_info=True)
            raise MarketDepthError(details={"collection": self.collection_slug}) from e

    async def _compute_and_store(self) -> MarketDepthSnapshot:
        listings, offers = await asyncio.gather(
            self.provider.get_listings(self.collection_slug, self.listings_limit),
            self.provider.get_offers(self.collection_slug, self.offers_limit),
        )

        start = time.perf_counter()
        snapshot = build_market_depth(listings, offers, now=self._now())
        duration_ms = (time.perf_counter() - start) * 1000
        record_aggregation(duration_ms, len(listings), len(offers))

        logger.info(
            f"Market depth for {self.collection_slug}: {len(snapshot.listings)} ask levels "
            f"({snapshot.total_listing_depth} items), {len(snapshot.offers)} bid levels "
            f"({snapshot.total_offer_depth} items), spread={snapshot.spread}"
        )

        await self.cache.set(self.cache_key, snapshot, self.ttl_seconds)
        return snapshot
