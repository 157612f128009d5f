# utils/rate_limit.py

import time
from collections import deque


class SlidingWindowRateLimiter:
    """
    In-memory sliding-window limiter keyed by an arbitrary string (client IP).

    Good enough for a single process; counters reset on restart. Keys whose
    hits have all left the window are forgotten.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque] = {}
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        """Record a hit for `key` and return False when the window is already full."""
        now = self._clock()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        hits = self._hits.get(key) or deque()
        self._expire(hits, now)
        if len(hits) >= self.max_requests:
            return False

        hits.append(now)
        self._hits[key] = hits
        return True

    def _expire(self, hits: deque, now: float):
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float):
        for key in list(self._hits):
            self._expire(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]
        self._last_sweep = now

    def reset(self):
        self._hits.clear()
