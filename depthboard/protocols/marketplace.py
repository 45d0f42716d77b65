"""
Marketplace Provider Protocol
Defines the interface for fetching raw listings and offers.
"""

from typing import List, Protocol
from abc import abstractmethod

from depthboard.schemas.market import RawListing, RawOffer


class MarketplaceProvider(Protocol):
    """Protocol for marketplace order data access."""

    @abstractmethod
    async def get_listings(self, collection_slug: str, limit: int) -> List[RawListing]:
        """Get active listings for a collection."""
        ...

    @abstractmethod
    async def get_offers(self, collection_slug: str, limit: int) -> List[RawOffer]:
        """Get active collection offers with remaining quantities."""
        ...
