"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Explicit ownership: the limiter lives on ``app.state`` and is created by
  the app factory, so each app (and each test) gets its own instance.

Rate limiting strategy:
- Fixed one-hour window per authenticated user.
- The limit can be tightened per route via ``rate_limited(limit=...)``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status

from practice_api.adapters.rate_limit.base import AbstractRateLimiter
from practice_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from practice_api.core.auth import get_current_user_id, hash_identifier
from practice_api.core.config import AppSettings, settings

logger = logging.getLogger(__name__)


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Construct the limiter configured for this process."""

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        window_seconds=cfg.rate_limit_window_seconds,
        default_limit=cfg.rate_limit_requests,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def build_rate_limit_key(user_id: str) -> str:
    """Namespace the limiter key so other identity kinds can share a store."""

    return f"user:{user_id}"


def _format_reset_time(reset_at: float) -> str:
    return datetime.fromtimestamp(reset_at, tz=timezone.utc).isoformat()


def rate_limited(limit: int | None = None) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing ``limit`` requests per window per user.

    Args:
        limit: Per-route limit; the configured default when omitted.

    Returns:
        Async dependency raising HTTP 429 once the user is over quota.
    """

    async def enforce_rate_limit(
        user_id: Annotated[str, Depends(get_current_user_id)],
        limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
    ) -> None:
        if not settings.app.rate_limit_enabled:
            return

        key = build_rate_limit_key(user_id)
        result = limiter.check(key, limit)
        log_extra = {
            "key_hash": hash_identifier(key),
            "limit": result.limit,
            "remaining": result.remaining,
        }

        if result.allowed:
            logger.info("rate_limit.allowed", extra=log_extra)
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={**log_extra, "retry_after_s": retry_after},
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(int(result.reset_at))

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": "Rate limit exceeded. Please try again later.",
                "reset_time": _format_reset_time(result.reset_at),
                "remaining": result.remaining,
            },
            headers=headers or None,
        )

    return enforce_rate_limit


enforce_rate_limit = rate_limited()
