"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

DEFAULT_LIMIT = 30
DEFAULT_WINDOW_MS = 60_000


@dataclass
class RateRecord:
    """Per-key counter state.

    Attributes:
        key: Caller-chosen identifier, stored exactly as given.
        count: Requests observed for ``key`` since ``window_start_ms``.
        window_start_ms: Clock reading (milliseconds) when the window opened.
    """

    key: str
    count: int
    window_start_ms: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        key: Key the request was counted against.
        limit: Max requests per window.
        count: Requests counted in the current window, including this one.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at_ms: Clock reading (milliseconds) after which the window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    key: str
    limit: int
    count: int
    remaining: int
    reset_at_ms: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(
        self,
        key: str,
        *,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> RateLimitResult:
        """Count one request against ``key`` and decide whether it may proceed.

        Args:
            key: Unique identifier (e.g., client IP, route plus user id).
            limit: Max requests allowed per window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def get_record(self, key: str) -> RateRecord | None:
        """Return a copy of the stored record for ``key``, if any."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget all state for ``key``."""
        raise NotImplementedError

    @abstractmethod
    def prune(self, idle_ms: int) -> int:
        """Drop records whose window opened more than ``idle_ms`` ago.

        Returns:
            Number of records removed.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        """Number of keys currently tracked."""
        raise NotImplementedError

    def allow(
        self,
        key: str,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> bool:
        """Boolean shortcut for ``consume``; the request is counted either way."""
        return self.consume(key, limit=limit, window_ms=window_ms).allowed
