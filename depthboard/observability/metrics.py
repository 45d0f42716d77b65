"""
In-process metrics for the depth service.
Counters, gauges and rolling histograms exposed as plain text.
"""

from fastapi import APIRouter, Response
from typing import Dict, List, Optional
import json

class SimpleMetrics:
    """Simple metrics tracking for observability."""

    def __init__(self):
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}
        self.histograms: Dict[str, List[float]] = {}

    @staticmethod
    def _key(name: str, labels: Optional[Dict[str, str]]) -> str:
        return f"{name}_{json.dumps(labels or {}, sort_keys=True)}"

    def inc_counter(self, name: str, labels: Dict[str, str] = None):
        """Increment a counter."""
        key = self._key(name, labels)
        self.counters[key] = self.counters.get(key, 0) + 1

    def set_gauge(self, name: str, value: float, labels: Dict[str, str] = None):
        """Set a gauge value."""
        self.gauges[self._key(name, labels)] = value

    def observe_histogram(self, name: str, value: float, labels: Dict[str, str] = None):
        """Observe a histogram value."""
        key = self._key(name, labels)
        samples = self.histograms.setdefault(key, [])
        samples.append(value)
        # Keep only last 1000 samples
        if len(samples) > 1000:
            self.histograms[key] = samples[-1000:]

    def get_counter(self, name: str, labels: Dict[str, str] = None) -> int:
        return self.counters.get(self._key(name, labels), 0)

    def reset(self):
        self.counters.clear()
        self.gauges.clear()
        self.histograms.clear()

    def get_metrics(self) -> str:
        """Get metrics in text format."""
        lines = []
        for key, value in self.counters.items():
            lines.append(f"# TYPE {key.split('_{')[0]} counter")
            lines.append(f"{key} {value}")
        for key, value in self.gauges.items():
            lines.append(f"# TYPE {key.split('_{')[0]} gauge")
            lines.append(f"{key} {value}")
        for key, values in self.histograms.items():
            if values:
                lines.append(f"# TYPE {key.split('_{')[0]} histogram")
                lines.append(f"{key}_count {len(values)}")
                lines.append(f"{key}_sum {sum(values)}")
                lines.append(f"{key}_avg {sum(values)/len(values)}")
        return "\n".join(lines)

# Global metrics instance
_metrics = SimpleMetrics()

def get_registry() -> SimpleMetrics:
    return _metrics

def record_cache_lookup(hit: bool):
    """Record a cache lookup outcome."""
    _metrics.inc_counter("cache_lookups", {"result": "hit" if hit else "miss"})

def record_upstream_request(endpoint: str, status_code: int):
    """Record an outbound marketplace request. status_code 0 means no response."""
    if status_code == 0:
        status = "network_error"
    elif status_code == 429:
        status = "rate_limited"
    elif 200 <= status_code < 300:
        status = "success"
    else:
        status = "error"
    _metrics.inc_counter("upstream_requests", {"endpoint": endpoint, "status": status})

def record_aggregation(duration_ms: float, listings: int, offers: int):
    """Record one market depth aggregation."""
    _metrics.inc_counter("market_depth_aggregations")
    _metrics.observe_histogram("market_depth_aggregation_ms", duration_ms)
    _metrics.set_gauge("market_depth_raw_listings", listings)
    _metrics.set_gauge("market_depth_raw_offers", offers)

def record_market_depth_failure():
    _metrics.inc_counter("market_depth_failures")

def get_metrics() -> str:
    """Get metrics in text format."""
    return _metrics.get_metrics()

def create_metrics_router() -> APIRouter:
    """Create FastAPI router for metrics endpoint."""
    router = APIRouter()

    @router.get("/metrics")
    def metrics():
        """Metrics endpoint."""
        return Response(get_metrics(), media_type="text/plain")

    return router
