"""
Market depth schemas using Pydantic for validation and serialization.
"""

import re
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_INTEGER_RE = re.compile(r"^-?\d+$")


class FixedPointPrice(BaseModel):
    """Token amount as integer digits over 10^decimals."""
    model_config = ConfigDict(extra="ignore")

    value: str       # arbitrary-precision integer, e.g. "1000000000000000000"
    decimals: int    # 18 for ETH/WETH
    currency: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v):
        if isinstance(v, bool):
            raise ValueError("price value must be an integer string")
        if isinstance(v, int):
            return str(v)
        if not isinstance(v, str) or not _INTEGER_RE.match(v.strip()):
            raise ValueError(f"price value must be an integer string, got {v!r}")
        return v.strip()

    @field_validator("decimals")
    @classmethod
    def validate_decimals(cls, v):
        if v < 0:
            raise ValueError("decimals cannot be negative")
        return v


class RawListing(BaseModel):
    """One active sell order for a single item."""
    model_config = ConfigDict(extra="ignore")

    order_hash: Optional[str] = None
    price: Optional[FixedPointPrice] = None

    @field_validator("price", mode="before")
    @classmethod
    def unwrap_current(cls, v: Any):
        # OpenSea nests the listing price under price.current
        if isinstance(v, dict) and "current" in v:
            v = v.get("current")
        if isinstance(v, dict) and "value" not in v:
            return None
        return v


class RawOffer(BaseModel):
    """One active buy order; price.value is the total across remaining_quantity items."""
    model_config = ConfigDict(extra="ignore")

    order_hash: Optional[str] = None
    price: Optional[FixedPointPrice] = None
    remaining_quantity: Optional[int] = None

    @field_validator("price", mode="before")
    @classmethod
    def drop_empty_price(cls, v: Any):
        if isinstance(v, dict) and "value" not in v:
            return None
        return v


class PriceBucket(BaseModel):
    """Aggregated depth at one 0.01 price level."""
    model_config = ConfigDict(frozen=True)

    price: float
    depth: int


class MarketDepthSnapshot(BaseModel):
    """Order book depth for a collection at one point in time."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    listings: Tuple[PriceBucket, ...] = ()   # ascending by price
    offers: Tuple[PriceBucket, ...] = ()     # descending by price
    spread: float = 0.0
    spread_percent: float = Field(0.0, alias="spreadPercent")
    lowest_listing: float = Field(0.0, alias="lowestListing")
    highest_offer: float = Field(0.0, alias="highestOffer")
    total_listing_depth: int = Field(0, alias="totalListingDepth")
    total_offer_depth: int = Field(0, alias="totalOfferDepth")
    last_updated: str = Field(..., alias="lastUpdated")  # ISO-8601 UTC


class CacheStats(BaseModel):
    """Cache statistics as reported by the refresh endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    total_entries: int = Field(alias="totalEntries")
    expired_entries: int = Field(alias="expiredEntries")
    total_size: str = Field(alias="totalSize")  # e.g. "2048 bytes"
