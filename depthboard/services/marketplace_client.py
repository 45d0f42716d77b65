"""
OpenSea v2 REST client.
Fetches collection listings and offers with rate limiting and retry/backoff.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from depthboard.errors import NetworkError, RateLimitError, UpstreamError
from depthboard.observability.metrics import record_upstream_request
from depthboard.schemas.market import RawListing, RawOffer
from depthboard.util.ratelimit import TokenBucket

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_S = 10


class OpenSeaClient:
    """Marketplace provider backed by the OpenSea v2 API."""

    def __init__(
        self,
        api_base: str,
        api_key: str = "",
        max_retries: int = 5,
        timeout_s: float = 10.0,
        limiter: Optional[TokenBucket] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_base = api_base.rstrip("/")
        self.max_retries = max_retries
        self.limiter = limiter
        self._sleep = sleep

        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-KEY"] = api_key
        else:
            logger.warning("OPENSEA_API_KEY not set, requests will be heavily rate limited")

        self.client = httpx.AsyncClient(headers=headers, timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _acquire(self) -> None:
        if self.limiter is None:
            return
        if not await self.limiter.acquire(timeout_ms=5000):
            raise RateLimitError("Local OpenSea rate limiter timed out")

    async def _fetch_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET a JSON document with retries.

        429 responses wait for Retry-After and try again. Other non-2xx
        responses and transport errors back off exponentially. The last
        failure is re-raised once attempts run out.
        """
        url = f"{self.api_base}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                await self._acquire()
                response = await self.client.get(url, params=params)
                record_upstream_request(path, response.status_code)

                if response.status_code == 429:
                    retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                    last_error = RateLimitError(
                        f"OpenSea rate limited {path}",
                        details={"retry_after_s": retry_after},
                    )
                    logger.warning(f"Rate limited, waiting {retry_after}s before retry {attempt + 1}/{self.max_retries}")
                    await self._sleep(retry_after)
                    continue

                if not response.is_success:
                    raise UpstreamError(
                        f"OpenSea API error: {response.status_code} {response.reason_phrase}",
                        details={"status_code": response.status_code, "path": path},
                    )

                return response.json()

            except httpx.HTTPError as e:
                record_upstream_request(path, 0)
                last_error = NetworkError(f"OpenSea request failed: {e}", details={"path": path})
            except (UpstreamError, RateLimitError) as e:
                last_error = e

            if attempt == self.max_retries - 1:
                break
            delay = 2 ** (attempt + 1)
            logger.warning(f"Retry {attempt + 1}/{self.max_retries} for {path} after {delay}s: {last_error}")
            await self._sleep(delay)

        if last_error is None:
            last_error = UpstreamError("Max retries exceeded", details={"path": path})
        raise last_error

    async def get_listings(self, collection_slug: str, limit: int = 50) -> List[RawListing]:
        """Fetch active listings for a collection."""
        data = await self._fetch_json(f"/listings/collection/{collection_slug}/all", {"limit": limit})
        return [RawListing.model_validate(item) for item in data.get("listings") or []]

    async def get_offers(self, collection_slug: str, limit: int = 50) -> List[RawOffer]:
        """Fetch collection offers with remaining quantities."""
        data = await self._fetch_json(f"/offers/collection/{collection_slug}", {"limit": limit})
        return [RawOffer.model_validate(item) for item in data.get("offers") or []]


def _parse_retry_after(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_RETRY_AFTER_S
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_RETRY_AFTER_S
