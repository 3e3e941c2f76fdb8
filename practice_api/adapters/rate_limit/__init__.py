"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start
with an in-memory limiter and later migrate to Redis or another shared store
without changing the API layer.
"""

from practice_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from practice_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from practice_api.adapters.rate_limit.sweeper import RateLimitSweeper

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
    "RateLimitSweeper",
]
