"""
In-memory TTL cache for computed market data.
Async get/set so callers do not care whether the backend is local or remote.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from depthboard.observability.metrics import record_cache_lookup

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any
    expires_at: float


def _entry_size(value: Any) -> int:
    """Approximate payload size in bytes, as served over HTTP."""
    if isinstance(value, BaseModel):
        return len(value.model_dump_json(by_alias=True))
    return len(str(value).encode())


class TTLCache:
    """Key/value store with per-entry time-to-live."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        """
        Get cached data by key.

        Expired entries are dropped on read and reported as a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for {key}")
            record_cache_lookup(hit=False)
            return None

        if self._clock() > entry.expires_at:
            del self._entries[key]
            logger.debug(f"Cache expired for {key}")
            record_cache_lookup(hit=False)
            return None

        logger.debug(f"Cache hit for {key}")
        record_cache_lookup(hit=True)
        return entry.data

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds."""
        self._entries[key] = CacheEntry(data=value, expires_at=self._clock() + ttl_seconds)
        logger.debug(f"Cache updated for {key} (ttl={ttl_seconds}s)")

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        """Clear all cached data."""
        self._entries.clear()
        logger.info("Cache cleared")

    async def clear_expired(self) -> int:
        """Remove expired entries. Returns the number removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now > e.expires_at]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        expired_entries = sum(1 for e in self._entries.values() if now > e.expires_at)
        keys: List[str] = list(self._entries.keys())
        return {
            "total_entries": len(keys),
            "expired_entries": expired_entries,
            "total_size_bytes": sum(_entry_size(e.data) for e in self._entries.values()),
            "keys": keys,
        }


# Global cache instance
_cache = TTLCache()

def get_cache() -> TTLCache:
    """Get the global cache."""
    return _cache
