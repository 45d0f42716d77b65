# depthboard/config.py
from dotenv import load_dotenv, find_dotenv
import os
import logging

from depthboard.errors import ConfigurationError

# Load nearest .env from project tree, don't override existing process env
load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", details={"variable": name})


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", details={"variable": name})


class Settings:
    """Service configuration read from the environment."""

    def __init__(self):
        # OpenSea API
        self.OPENSEA_API_BASE = (os.getenv("OPENSEA_API_BASE") or "https://api.opensea.io/api/v2").strip().rstrip("/")
        self.OPENSEA_API_KEY = (os.getenv("OPENSEA_API_KEY") or "").strip()
        self.OPENSEA_MAX_RETRIES = _env_int("OPENSEA_MAX_RETRIES", 5)
        self.OPENSEA_TIMEOUT_S = _env_float("OPENSEA_TIMEOUT_S", 10.0)

        # Rate limiting for outbound OpenSea calls
        self.OPENSEA_RATE_RPS = _env_float("OPENSEA_RATE_RPS", 2.0)
        self.OPENSEA_RATE_BURST = _env_int("OPENSEA_RATE_BURST", 4)

        # Collection and market depth
        self.COLLECTION_SLUG = (os.getenv("COLLECTION_SLUG") or "good-vibes-club").strip()
        self.MARKET_DEPTH_TTL_S = _env_int("MARKET_DEPTH_TTL_S", 120)
        self.MARKET_DEPTH_LISTINGS_LIMIT = _env_int("MARKET_DEPTH_LISTINGS_LIMIT", 100)
        self.MARKET_DEPTH_OFFERS_LIMIT = _env_int("MARKET_DEPTH_OFFERS_LIMIT", 200)

        # Logging
        self.LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
        self.LOG_DIR = (os.getenv("LOG_DIR") or ".run").strip()

        if self.OPENSEA_MAX_RETRIES < 1:
            raise ConfigurationError("OPENSEA_MAX_RETRIES must be at least 1", details={"variable": "OPENSEA_MAX_RETRIES"})
        if self.MARKET_DEPTH_TTL_S <= 0:
            raise ConfigurationError("MARKET_DEPTH_TTL_S must be positive", details={"variable": "MARKET_DEPTH_TTL_S"})

    def redacted(self) -> dict:
        """Settings snapshot safe for logging."""
        return {
            "OPENSEA_API_BASE": self.OPENSEA_API_BASE,
            "OPENSEA_API_KEY": "***" if self.OPENSEA_API_KEY else "",
            "COLLECTION_SLUG": self.COLLECTION_SLUG,
            "MARKET_DEPTH_TTL_S": self.MARKET_DEPTH_TTL_S,
            "MARKET_DEPTH_LISTINGS_LIMIT": self.MARKET_DEPTH_LISTINGS_LIMIT,
            "MARKET_DEPTH_OFFERS_LIMIT": self.MARKET_DEPTH_OFFERS_LIMIT,
            "LOG_LEVEL": self.LOG_LEVEL,
        }

settings = Settings()
