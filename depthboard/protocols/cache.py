"""
Cache Protocol
Defines the get/set contract with TTL.
"""

from typing import Any, Optional, Protocol
from abc import abstractmethod


class DepthCache(Protocol):
    """Protocol for a key/value cache with time-to-live."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get cached value, or None on a miss."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value for ttl_seconds."""
        ...
