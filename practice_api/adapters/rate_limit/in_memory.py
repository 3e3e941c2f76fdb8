"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows open at an identity's first request (or first request after the
  previous window ended); they are not aligned to the clock.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from practice_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

HOUR_SECONDS = 60 * 60
DEFAULT_LIMIT = 30


@dataclass
class _WindowState:
    reset_at: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per identity.

    Every call to :meth:`check` counts, including calls that are rejected.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        window_seconds: float = HOUR_SECONDS,
        default_limit: int = DEFAULT_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            window_seconds: Length of each window in seconds.
            default_limit: Limit applied when ``check`` is called without one.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If default_limit or window_seconds are invalid.
        """
        if default_limit < 1:
            raise ValueError("default_limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._default_limit = default_limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_identity: dict[str, _WindowState] = {}

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def default_limit(self) -> int:
        return self._default_limit

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_identity)

    def _get_or_open_window(self, identity: str, now: float) -> _WindowState:
        """Return the live window for identity, opening one if needed."""
        state = self._state_by_identity.get(identity)
        if state is None or now > state.reset_at:
            state = _WindowState(reset_at=now + self._window_seconds, count=0)
            self._state_by_identity[identity] = state
        return state

    def check(self, identity: str, limit: int | None = None) -> RateLimitResult:
        """Count a request for the identity and report the decision.

        Args:
            identity: Unique identifier for rate limiting (e.g., ``user:42``).
            limit: Max requests per window (defaults to ``default_limit``).

        Returns:
            RateLimitResult with allowance decision and metadata.
        """
        effective_limit = self._default_limit if limit is None else limit
        now = self._clock()

        with self._lock:
            state = self._get_or_open_window(identity, now)
            state.count += 1
            count = state.count
            reset_at = state.reset_at

        allowed = count <= effective_limit
        retry_after = None
        if not allowed:
            retry_after = max(0, int(math.ceil(reset_at - now)))

        return RateLimitResult(
            allowed=allowed,
            limit=effective_limit,
            remaining=max(0, effective_limit - count),
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def reset(self, identity: str) -> None:
        with self._lock:
            self._state_by_identity.pop(identity, None)

    def sweep_expired(self) -> int:
        """Remove entries whose window has ended.

        Expired entries are already replaced by ``check`` on their next use,
        so this only bounds memory to recently active identities.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                identity
                for identity, state in self._state_by_identity.items()
                if now > state.reset_at
            ]
            for identity in expired:
                del self._state_by_identity[identity]
        return len(expired)
