# Overview: In-process sliding-window rate limiter for the auth routes.

"""
Rate Limit Service

Counts requests per key (client IP) inside a sliding window. State lives in
process memory: counters reset on restart and each server instance keeps
its own view, so N instances admit up to N x limit requests per window.
Keys whose hits have all left the window are dropped.
"""

import threading
import time
from collections import deque


class SlidingWindowRateLimiter:
    def __init__(self):
        self._hits: dict[str, deque] = {}
        self._lock = threading.Lock()
        self._last_sweep: float | None = None

    def _sweep(self, cutoff: float) -> None:
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def hit(self, key: str, *, limit: int, window_seconds: float, now: float | None = None) -> bool:
        """
        Record one request for key.

        Returns False (and does not record) when the window is already full.
        """
        now = time.monotonic() if now is None else now
        cutoff = now - window_seconds
        with self._lock:
            if self._last_sweep is None or now - self._last_sweep >= window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            hits = self._hits.get(key)
            if hits is None:
                hits = self._hits[key] = deque()
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= limit:
                return False
            hits.append(now)
            return True

    def remaining(self, key: str, *, limit: int, window_seconds: float, now: float | None = None) -> int:
        now = time.monotonic() if now is None else now
        cutoff = now - window_seconds
        with self._lock:
            active = sum(1 for ts in self._hits.get(key, ()) if ts > cutoff)
        return max(limit - active, 0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = None


auth_limiter = SlidingWindowRateLimiter()
