"""
Clock helpers.
Wall clock for production and a deterministic clock that tests can freeze and advance.
"""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DeterministicClock:
    """A deterministic clock for testing that can be frozen and advanced."""

    def __init__(self, start_time: float = 0.0):
        self._time = start_time
        self._frozen = False

    def time(self) -> float:
        """Get current time."""
        if self._frozen:
            return self._time
        return time.time()

    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.time(), tz=timezone.utc)

    def freeze(self, at: float = None):
        """Freeze the clock at the given time, or at the current time."""
        self._frozen = True
        self._time = time.time() if at is None else at

    def advance(self, seconds: float):
        """Advance the clock by the given number of seconds."""
        if not self._frozen:
            raise RuntimeError("Clock must be frozen to advance")
        self._time += seconds

    def unfreeze(self):
        """Unfreeze the clock to use real time."""
        self._frozen = False

# Global deterministic clock for tests
_deterministic_clock = DeterministicClock()

def get_deterministic_clock() -> DeterministicClock:
    """Get the global deterministic clock."""
    return _deterministic_clock
