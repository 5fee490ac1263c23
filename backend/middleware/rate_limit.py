"""
In-memory rate limiting for inbound bot messages and link requests.

Single-process only. Counters reset on restart.
"""

from __future__ import annotations

import threading
from collections import defaultdict, deque
from datetime import UTC, datetime, timedelta


class RateLimiter:
    """
    Sliding-window rate limiter keyed by an arbitrary string
    (a Telegram chat id, a user id).
    """

    def __init__(self) -> None:
        # key -> timestamps of accepted hits, oldest first
        self._hits: dict[str, deque[datetime]] = defaultdict(deque)
        self._lock = threading.Lock()

    def check_rate_limit(self, key: str, max_requests: int, window_minutes: int = 60) -> bool:
        """
        Record a hit for ``key`` if it is still under the limit.

        Args:
            key: Identifier to rate limit
            max_requests: Maximum hits allowed in the window
            window_minutes: Window length in minutes (default 60)

        Returns:
            True if the hit was accepted, False if the limit is exhausted
        """
        now = datetime.now(UTC)
        cutoff = now - timedelta(minutes=window_minutes)

        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= max_requests:
                return False
            hits.append(now)
            return True

    def cleanup_old_entries(self, max_age_hours: int = 2) -> None:
        """Forget keys whose newest hit is older than max_age_hours."""
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        with self._lock:
            for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
                del self._hits[key]


# Global rate limiter instance
rate_limiter = RateLimiter()
