"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around the read-modify-write of each record.
- Records are never evicted implicitly. Call ``prune`` to reclaim idle keys.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import replace
from typing import Callable

from dashguard.adapters.rate_limit.base import (
    DEFAULT_LIMIT,
    DEFAULT_WINDOW_MS,
    AbstractRateLimiter,
    RateLimitResult,
    RateRecord,
)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    The window for a key opens on its first request and is restarted by the
    first request arriving strictly more than ``window_ms`` after it opened.
    Every call is counted, including the ones that end up rejected, so a
    caller hammering a limited key keeps its own window saturated.

    ``limit`` and ``window_ms`` are taken per call rather than per instance:
    one limiter can serve endpoints with different budgets as long as their
    keys are namespaced. Values are not validated; ``limit <= 0`` rejects
    everything.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(self, *, clock: Callable[[], float] = monotonic_ms) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source returning milliseconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, RateRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def consume(
        self,
        key: str,
        *,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> RateLimitResult:
        """Count a request for ``key`` and report whether it is within budget.

        Args:
            key: Rate limit key. Not normalized.
            limit: Maximum requests per window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult with allowance decision and metadata.
        """
        now = self._clock()

        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = RateRecord(key=key, count=0, window_start_ms=now)
                self._records[key] = record

            # Strictly greater: a request exactly on the boundary stays in the old window.
            if now - record.window_start_ms > window_ms:
                record.count = 0
                record.window_start_ms = now

            record.count += 1
            count = record.count
            reset_at_ms = record.window_start_ms + window_ms

        allowed = count <= limit
        remaining = max(0, limit - count)
        retry_after = None
        if not allowed:
            retry_after = max(0, int(math.ceil((reset_at_ms - now) / 1000)))

        return RateLimitResult(
            allowed=allowed,
            key=key,
            limit=limit,
            count=count,
            remaining=remaining,
            reset_at_ms=reset_at_ms,
            retry_after_seconds=retry_after,
        )

    def get_record(self, key: str) -> RateRecord | None:
        with self._lock:
            record = self._records.get(key)
            return replace(record) if record is not None else None

    def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def prune(self, idle_ms: int) -> int:
        now = self._clock()
        with self._lock:
            stale = [
                key
                for key, record in self._records.items()
                if now - record.window_start_ms > idle_ms
            ]
            for key in stale:
                del self._records[key]
        return len(stale)
