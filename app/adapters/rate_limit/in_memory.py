"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Counter updates happen under a lock, so concurrent bursts from one client
  are never undercounted.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _Window:
    start: int
    count: int = 0


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Count requests per key inside aligned, fixed-length windows.

    Windows are aligned to multiples of ``window_seconds`` since the epoch, so
    a steady stream from one client is admitted ``limit`` times per window and
    rejected for the rest of it.

    Windows belonging to idle keys are swept every ``prune_every`` calls so
    the key map tracks only recently active clients.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        prune_every: int = 1000,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if prune_every < 1:
            raise ValueError("prune_every must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._prune_every = prune_every
        self._calls_since_prune = 0
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _window_start(self, now: float) -> int:
        return int(now // self._window_seconds) * self._window_seconds

    def _prune_locked(self, current_start: int) -> None:
        stale = [key for key, window in self._windows.items() if window.start < current_start]
        for key in stale:
            del self._windows[key]

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Admit the request if ``key`` still has budget in the current window.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        start = self._window_start(now)
        reset_at = start + self._window_seconds

        with self._lock:
            self._calls_since_prune += 1
            if self._calls_since_prune >= self._prune_every:
                self._prune_locked(start)
                self._calls_since_prune = 0

            window = self._windows.get(key)
            if window is None or window.start != start:
                window = _Window(start=start)
                self._windows[key] = window

            if window.count + cost <= self._limit:
                window.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - window.count,
                    reset_at=reset_at,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - window.count),
                reset_at=reset_at,
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
