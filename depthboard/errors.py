"""
Centralized exceptions.
Error taxonomy and structured error handling.
"""

from typing import Dict, Any, Optional
from fastapi import HTTPException, status


class DepthboardError(Exception):
    """Base exception for depthboard."""

    def __init__(self, message: str, error_code: str = "UNKNOWN", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class RateLimitError(DepthboardError):
    """Upstream rate limit exceeded and retries exhausted."""

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "RATE_LIMIT", details)


class NetworkError(DepthboardError):
    """Network connectivity error."""

    def __init__(self, message: str = "Network error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NETWORK_ERROR", details)


class UpstreamError(DepthboardError):
    """Marketplace API answered with a non-2xx status."""

    def __init__(self, message: str = "Upstream API error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "UPSTREAM_ERROR", details)


class CacheError(DepthboardError):
    """Cache backend failure."""

    def __init__(self, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CACHE_ERROR", details)


class ConfigurationError(DepthboardError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


class MarketDepthError(DepthboardError):
    """Market depth could not be produced for this request."""

    def __init__(self, message: str = "Failed to fetch market depth", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "MARKET_DEPTH_ERROR", details)


# Error mapping to HTTP responses
ERROR_TO_HTTP_STATUS = {
    RateLimitError: status.HTTP_429_TOO_MANY_REQUESTS,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
    CacheError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    MarketDepthError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_http_exception(error: DepthboardError) -> HTTPException:
    """Convert DepthboardError to HTTPException with proper status code."""
    status_code = ERROR_TO_HTTP_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.error_code,
            "message": error.message,
            "details": error.details
        }
    )


def sanitize_error_message(message: str) -> str:
    """Sanitize error messages to prevent information leakage."""
    sensitive_patterns = [
        "api_key", "x-api-key", "secret", "token", "password"
    ]

    sanitized = message
    for pattern in sensitive_patterns:
        lowered = sanitized.lower()
        idx = lowered.find(pattern)
        while idx != -1:
            sanitized = sanitized[:idx] + "***" + sanitized[idx + len(pattern):]
            lowered = sanitized.lower()
            idx = lowered.find(pattern, idx + 3)

    return sanitized


def create_structured_error_response(error: Exception) -> Dict[str, Any]:
    """Create structured error response for logging and API responses."""
    if isinstance(error, DepthboardError):
        return {
            "error_type": error.error_code,
            "message": sanitize_error_message(error.message),
            "details": error.details,
        }
    return {
        "error_type": "UNKNOWN_ERROR",
        "message": sanitize_error_message(str(error)),
        "details": {},
    }
