"""
Protocols
Lightweight Protocols for the collaborators the depth aggregator consumes.
"""

from .marketplace import MarketplaceProvider
from .cache import DepthCache

__all__ = [
    "MarketplaceProvider",
    "DepthCache",
]
