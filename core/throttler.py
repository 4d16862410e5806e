"""In-memory sliding-window rate limiter"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass(frozen=True)
class ThrottleResult:
    allowed: bool
    total_hits: int
    limit: int
    retry_after_ms: int = 0


class SlidingWindowThrottler:
    """
    At most ``limit`` hits per key within any ``ttl_ms`` window.
    Rejected hits are not recorded, so a client regains access as soon as its
    oldest accepted hit leaves the window.
    Keys with no hit left in the window are dropped, at most once per window.
    """

    def __init__(self, ttl_ms: int = 60000, limit: int = 30, clock: Callable[[], float] = time.monotonic):
        self.ttl_ms = ttl_ms
        self.limit = limit
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep_ms = clock() * 1000

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def hit(self, key: str) -> ThrottleResult:
        now_ms = self._clock() * 1000
        window_start = now_ms - self.ttl_ms

        with self._lock:
            if now_ms - self._last_sweep_ms >= self.ttl_ms:
                self._sweep(window_start)
                self._last_sweep_ms = now_ms

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after_ms = int(hits[0] + self.ttl_ms - now_ms) + 1
                return ThrottleResult(False, len(hits), self.limit, retry_after_ms)

            hits.append(now_ms)
            return ThrottleResult(True, len(hits), self.limit)

    def _sweep(self, window_start: float) -> None:
        # newest hit is last; a key whose newest hit expired is empty
        expired = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in expired:
            del self._hits[key]

    def reset(self, key: str = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)
