"""Market depth analytics service for NFT collections."""

__version__ = "1.0.0"
