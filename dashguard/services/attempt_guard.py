"""Brute-force lockout for secret code validation.

Unlike the request rate limiter, the attempt guard blocks a key outright once
it exceeds its attempt budget, and keeps rejecting it until the block expires
even if the caller stops. A successful validation clears the key.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable

from dashguard.adapters.rate_limit.in_memory import monotonic_ms
from dashguard.core.auth import hash_secret

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 7
DEFAULT_WINDOW_MS = 15 * 60 * 1000
DEFAULT_BLOCK_MS = 15 * 60 * 1000


@dataclass
class _AttemptState:
    attempts: int
    first_attempt_ms: float
    last_attempt_ms: float
    blocked_until_ms: float | None = None


@dataclass(frozen=True)
class AttemptDecision:
    """Outcome of an attempt check.

    Attributes:
        allowed: Whether the attempt may be evaluated.
        remaining: Attempts left in the current window.
        blocked_until_ms: Clock reading when the block lifts, if blocked.
        message: Caller-facing explanation when blocked.
    """

    allowed: bool
    remaining: int
    blocked_until_ms: float | None = None
    message: str | None = None

    def retry_after_seconds(self, now_ms: float) -> int:
        if self.blocked_until_ms is None:
            return 0
        return max(0, int(math.ceil((self.blocked_until_ms - now_ms) / 1000)))


class AttemptGuard:
    """Per-key attempt counter with a temporary block once exceeded."""

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        block_ms: int = DEFAULT_BLOCK_MS,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if window_ms < 1 or block_ms < 1:
            raise ValueError("window_ms and block_ms must be >= 1")

        self._max_attempts = max_attempts
        self._window_ms = window_ms
        self._block_ms = block_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _AttemptState] = {}

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _start(self, key: str, now: float) -> AttemptDecision:
        self._state_by_key[key] = _AttemptState(
            attempts=1, first_attempt_ms=now, last_attempt_ms=now
        )
        return AttemptDecision(allowed=True, remaining=self._max_attempts - 1)

    def _blocked(self, blocked_until: float, now: float) -> AttemptDecision:
        minutes = max(1, math.ceil((blocked_until - now) / 60_000))
        return AttemptDecision(
            allowed=False,
            remaining=0,
            blocked_until_ms=blocked_until,
            message=f"Too many failed attempts. Please try again in {minutes} minutes.",
        )

    def check(self, key: str) -> AttemptDecision:
        """Record an attempt for ``key`` and decide whether it may proceed."""
        now = self._clock()

        with self._lock:
            state = self._state_by_key.get(key)
            if state is None:
                return self._start(key, now)

            if state.blocked_until_ms is not None:
                if state.blocked_until_ms > now:
                    return self._blocked(state.blocked_until_ms, now)
                # Block served; the caller starts over with a fresh window.
                return self._start(key, now)

            if now - state.first_attempt_ms > self._window_ms:
                return self._start(key, now)

            state.attempts += 1
            state.last_attempt_ms = now

            if state.attempts > self._max_attempts:
                state.blocked_until_ms = now + self._block_ms
                logger.warning(
                    "attempt_guard.blocked",
                    extra={
                        "key_hash": hash_secret(key),
                        "attempts": state.attempts,
                        "block_ms": self._block_ms,
                    },
                )
                return self._blocked(state.blocked_until_ms, now)

            return AttemptDecision(
                allowed=True, remaining=self._max_attempts - state.attempts
            )

    def succeed(self, key: str) -> None:
        """Forget ``key`` after a successful validation."""
        with self._lock:
            self._state_by_key.pop(key, None)

    def prune(self) -> int:
        """Remove keys idle past the window that are not currently blocked."""
        now = self._clock()
        expired_before = now - self._window_ms

        with self._lock:
            stale = [
                key
                for key, state in self._state_by_key.items()
                if state.last_attempt_ms < expired_before
                and (state.blocked_until_ms is None or state.blocked_until_ms < now)
            ]
            for key in stale:
                del self._state_by_key[key]

        if stale:
            logger.debug("attempt_guard.pruned", extra={"removed": len(stale)})
        return len(stale)
