"""
Async token bucket rate limiter for OpenSea API calls.
Provides smooth rate limiting with burst capacity and refill rate.
"""

import asyncio
import time
import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

@dataclass
class RateLimitStats:
    """Rate limiter statistics for monitoring."""
    tokens_available: float
    tokens_consumed: int
    wait_time_ms: float
    last_refill: float

class TokenBucket:
    """
    Async token bucket rate limiter.

    Tokens refill continuously at `rps` up to `burst`. A caller that would
    have to wait longer than its timeout gets False back instead of blocking.
    """

    def __init__(self, rps: float, burst: int, name: str = "limiter",
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], object] = asyncio.sleep):
        if rps <= 0:
            raise ValueError("rps must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rps = rps
        self.burst = burst
        self.name = name
        self._clock = clock
        self._sleep = sleep

        self.tokens = float(burst)
        self.last_refill = clock()

        self.tokens_consumed = 0
        self.total_wait_time = 0.0

        self._lock = asyncio.Lock()

        logger.info(f"Initialized {name}: rps={rps}, burst={burst}")

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(self.burst, self.tokens + elapsed * self.rps)
            self.last_refill = now

    async def acquire(self, tokens: int = 1, timeout_ms: int = 1000) -> bool:
        """
        Acquire tokens from the bucket with timeout.

        Args:
            tokens: Number of tokens to acquire
            timeout_ms: Maximum wait time in milliseconds

        Returns:
            True if tokens acquired, False if the wait would exceed the timeout
        """
        start_time = self._clock()

        async with self._lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                self.tokens_consumed += tokens
                logger.debug(f"{self.name}: acquired {tokens} tokens")
                return True

            wait_seconds = (tokens - self.tokens) / self.rps
            if wait_seconds * 1000 > timeout_ms:
                logger.warning(f"{self.name}: would wait {wait_seconds:.3f}s, over timeout of {timeout_ms}ms; tokens={self.tokens:.1f}/{self.burst}")
                return False

            await self._sleep(wait_seconds)
            self.tokens = min(self.burst, self.tokens + wait_seconds * self.rps)
            self.last_refill = max(self.last_refill, self._clock())
            self.tokens -= tokens
            self.tokens_consumed += tokens

            wait_time = max(0.0, (self._clock() - start_time) * 1000)
            self.total_wait_time += wait_time
            logger.debug(f"{self.name}: waited {wait_seconds:.3f}s for {tokens} tokens")
            return True

    def get_stats(self) -> RateLimitStats:
        """Get current rate limiter statistics."""
        return RateLimitStats(
            tokens_available=self.tokens,
            tokens_consumed=self.tokens_consumed,
            wait_time_ms=self.total_wait_time,
            last_refill=self.last_refill
        )

    def reset_stats(self):
        """Reset statistics counters."""
        self.tokens_consumed = 0
        self.total_wait_time = 0.0

def initialize_limiter(rps: float, burst: int) -> TokenBucket:
    """Build the rate limiter shared by all OpenSea requests."""
    return TokenBucket(rps, burst, "opensea_limiter")
