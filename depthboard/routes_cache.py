"""
Cache maintenance endpoints.
Stats, targeted or full invalidation, and expired-entry cleanup.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from depthboard.errors import CacheError
from depthboard.schemas.market import CacheStats
from depthboard.util.cache import TTLCache
from depthboard.util.clock import iso_timestamp, utc_now
from depthboard.state import get_depth_cache

logger = logging.getLogger(__name__)
router = APIRouter(tags=["cache"])

@router.get("/api/refresh", response_model=CacheStats)
async def get_cache_stats(cache: TTLCache = Depends(get_depth_cache)):
    """Current cache statistics."""
    try:
        stats = cache.get_stats()
    except Exception as e:
        raise CacheError("Failed to get cache stats") from e
    return CacheStats(
        total_entries=stats["total_entries"],
        expired_entries=stats["expired_entries"],
        total_size=f"{stats['total_size_bytes']} bytes",
    )

@router.post("/api/refresh")
async def refresh_cache(key: Optional[str] = Query(None), cache: TTLCache = Depends(get_depth_cache)):
    """Drop one cache key, or everything when no key is given."""
    try:
        if key:
            await cache.delete(key)
            message = f'Cache key "{key}" cleared successfully'
        else:
            await cache.clear()
            message = "All cache cleared successfully"
    except Exception as e:
        raise CacheError("Failed to refresh cache", details={"key": key}) from e

    logger.info(message)
    return {"success": True, "message": message, "timestamp": iso_timestamp(utc_now())}

@router.get("/api/admin/cleanup-cache")
async def cleanup_cache(cache: TTLCache = Depends(get_depth_cache)):
    """Remove expired cache entries."""
    try:
        deleted_count = await cache.clear_expired()
    except Exception as e:
        logger.error(f"Cache cleanup error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    logger.info(f"Cache cleanup complete: {deleted_count} expired entries removed")
    return {"success": True, "deletedCount": deleted_count, "timestamp": iso_timestamp(utc_now())}
