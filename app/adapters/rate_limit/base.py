"""Rate limiter interfaces.

The HTTP layer depends on this abstraction only, so the in-memory counter can
be replaced by a shared store (e.g. Redis) when the service runs with more
than one worker process.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max admitted requests per window.
        remaining: Requests still admitted in the current window.
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Seconds until admission resumes (blocked only).
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for per-client request throttling."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Count a request against ``key`` and decide whether to admit it.

        Args:
            key: Client identity (e.g. ``ip:203.0.113.7``).
            cost: Units to consume (default 1).
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget the counter for ``key``, or every counter when omitted."""
        raise NotImplementedError
