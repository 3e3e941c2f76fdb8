"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis with an atomic
increment-with-expiry) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identity: str, limit: int | None = None) -> RateLimitResult:
        """Count one request for ``identity`` and decide whether it may proceed.

        Args:
            identity: Unique identifier (e.g., ``user:<id>``).
            limit: Max requests per window; the limiter default when omitted.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, identity: str) -> None:
        """Forget ``identity`` so its next check opens a fresh window."""
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self) -> int:
        """Drop state for identities whose window has ended.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError
