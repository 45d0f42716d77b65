"""
Process-wide service wiring.
Builds the OpenSea client, cache and depth service once and hands them to routes.
"""

import logging
from typing import Optional

from depthboard.config import Settings, settings
from depthboard.services.market_depth import MarketDepthService
from depthboard.services.marketplace_client import OpenSeaClient
from depthboard.util.cache import TTLCache, get_cache
from depthboard.util.ratelimit import initialize_limiter

logger = logging.getLogger(__name__)

_client: Optional[OpenSeaClient] = None
_service: Optional[MarketDepthService] = None


def init_services(cfg: Settings = settings) -> MarketDepthService:
    """Create the marketplace client and depth service (idempotent)."""
    global _client, _service
    if _service is not None:
        return _service

    limiter = initialize_limiter(cfg.OPENSEA_RATE_RPS, cfg.OPENSEA_RATE_BURST)
    _client = OpenSeaClient(
        api_base=cfg.OPENSEA_API_BASE,
        api_key=cfg.OPENSEA_API_KEY,
        max_retries=cfg.OPENSEA_MAX_RETRIES,
        timeout_s=cfg.OPENSEA_TIMEOUT_S,
        limiter=limiter,
    )
    _service = MarketDepthService(
        provider=_client,
        cache=get_cache(),
        collection_slug=cfg.COLLECTION_SLUG,
        ttl_seconds=cfg.MARKET_DEPTH_TTL_S,
        listings_limit=cfg.MARKET_DEPTH_LISTINGS_LIMIT,
        offers_limit=cfg.MARKET_DEPTH_OFFERS_LIMIT,
    )
    logger.info(f"Market depth service ready for {cfg.COLLECTION_SLUG}")
    return _service


async def shutdown_services() -> None:
    global _client, _service
    if _client is not None:
        await _client.aclose()
    _client = None
    _service = None


def get_market_depth_service() -> MarketDepthService:
    """FastAPI dependency for the depth service."""
    return init_services()


def get_depth_cache() -> TTLCache:
    """FastAPI dependency for the shared cache."""
    return get_cache()
