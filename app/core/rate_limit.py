"""Rate limiting dependency applied to every route.

The limiter instance is built once per application by ``build_rate_limiter``
and stored on ``app.state``; ``enforce_rate_limit`` is registered as an
application-level dependency so all endpoints share one budget per client.

Strategy: fixed window per client IP (100 requests / 15 minutes by default).
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import AppSettings
from app.core.errors import RateLimitedError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def _describe_window(seconds: int) -> str:
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return f"{hours} hour" + ("s" if hours != 1 else "")
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" + ("s" if minutes != 1 else "")
    return f"{seconds} second" + ("s" if seconds != 1 else "")


def build_rate_limiter(app_settings: AppSettings) -> AbstractRateLimiter:
    return InMemoryFixedWindowRateLimiter(
        limit=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )


def client_identity(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Build the limiter key for the current request.

    Args:
        request: Incoming request.
        trust_forwarded_for: Use the first ``X-Forwarded-For`` hop when the
            service sits behind a proxy that sets it.

    Returns:
        Namespaced key such as ``ip:198.51.100.4``.
    """

    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency admitting or rejecting the request.

    Raises:
        RateLimitedError: When the client exhausted its budget for the window.
    """

    app_settings: AppSettings = request.app.state.settings.app
    if not app_settings.rate_limit_enabled:
        return

    limiter: AbstractRateLimiter = request.app.state.rate_limiter
    key = client_identity(
        request, trust_forwarded_for=app_settings.rate_limit_trust_forwarded_for
    )

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={"key_hash": hash_identifier(key), "remaining": result.remaining},
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": hash_identifier(key),
            "limit": result.limit,
            "window_s": app_settings.rate_limit_window_seconds,
            "retry_after_s": retry_after,
            "path": request.url.path,
        },
    )

    headers: dict[str, str] = {}
    if app_settings.rate_limit_include_headers:
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        }

    window = _describe_window(app_settings.rate_limit_window_seconds)
    raise RateLimitedError(
        code="rate_limited",
        message=f"Too many requests from this IP, please try again after {window}",
        details={"retry_after": retry_after},
        headers=headers,
    )
