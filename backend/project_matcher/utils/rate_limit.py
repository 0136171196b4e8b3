"""In-memory rate limiter guarding the LLM-backed endpoints."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from typing import Callable


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by caller (per process, not shared across workers)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._hits: dict[str, deque] = defaultdict(deque)
        self._lock = threading.Lock()
        self._clock = clock

    def allow(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        """Record a hit for `key` and report whether it fits in the window.

        Returns `(allowed, retry_after_seconds)`; rejected hits are not recorded.
        """
        now = self._clock()
        with self._lock:
            hits = self._hits[key]
            cutoff = now - window_seconds
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= max_requests:
                return False, max(1, int(window_seconds - (now - hits[0])))
            hits.append(now)
        return True, 0

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)
