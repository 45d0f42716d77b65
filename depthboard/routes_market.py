"""
Market depth API.
Serves the cached order book snapshot for the configured collection.
"""

from fastapi import APIRouter, Depends

from depthboard.schemas.market import MarketDepthSnapshot
from depthboard.services.market_depth import MarketDepthService
from depthboard.state import get_market_depth_service

router = APIRouter(tags=["market"])

@router.get("/api/market-depth", response_model=MarketDepthSnapshot)
async def get_market_depth(service: MarketDepthService = Depends(get_market_depth_service)):
    """
    Order book depth: bucketed asks and bids plus spread.

    A MarketDepthError is rendered by the error handler as a 500 with
    {"error": "Failed to fetch market depth"}.
    """
    return await service.get_market_depth()
