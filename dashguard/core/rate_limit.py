"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency factory only.
- Swap-friendly: the limiter is an injected store on ``app.state`` behind an
  abstract interface, so it can be replaced (e.g., Redis) or isolated in tests.
- Per-route budgets: each protected route names a scope and may override the
  configured limit and window.

Key strategy:
- ``{scope}:user:{user_id}`` when the caller has a session.
- ``{scope}:ip:{client_host}`` otherwise.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from dashguard.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from dashguard.core.auth import hash_secret, resolve_session
from dashguard.core.config import settings

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application.

    Raises:
        RuntimeError: If the app was built without a limiter.
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        raise RuntimeError("app.state.rate_limiter is not configured")
    return limiter


def build_rate_limit_key(scope: str, request: Request, user_id: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        scope: Route-level namespace (e.g., "session").
        request: FastAPI request.
        user_id: Authenticated user id, if any.

    Returns:
        str: Namespaced limiter key.
    """

    if user_id:
        return f"{scope}:user:{user_id}"

    client_host = request.client.host if request.client else "unknown"
    return f"{scope}:ip:{client_host}"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard throttling headers for a rejected request.

    The limiter clock is monotonic, so X-RateLimit-Reset is expressed as
    seconds until the window resets rather than an epoch timestamp.
    """
    retry_after = str(result.retry_after_seconds or 0)
    return {
        "Retry-After": retry_after,
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": retry_after,
    }


def rate_limited(
    scope: str,
    *,
    limit: int | None = None,
    window_ms: int | None = None,
) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing a fixed-window budget.

    Each request consumes one unit. When the budget for the caller's key is
    exhausted the dependency raises HTTP 429.

    Args:
        scope: Namespace prefixed to every key counted by this dependency.
        limit: Requests per window; defaults to ``APP_RATE_LIMIT_REQUESTS``.
        window_ms: Window length; defaults to ``APP_RATE_LIMIT_WINDOW_MS``.
    """

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        effective_limit = limit if limit is not None else settings.app.rate_limit_requests
        effective_window = (
            window_ms if window_ms is not None else settings.app.rate_limit_window_ms
        )

        session = await resolve_session(request)
        user_id = session.user.id if session.user else None
        key = build_rate_limit_key(scope, request, user_id)

        result = get_rate_limiter(request).consume(
            key, limit=effective_limit, window_ms=effective_window
        )
        log_fields = {
            "scope": scope,
            "key_type": "user" if user_id else "ip",
            "key_hash": hash_secret(key),
            "limit": result.limit,
            "remaining": result.remaining,
            "window_ms": effective_window,
        }

        if result.allowed:
            logger.info("rate_limit.allowed", extra=log_fields)
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={**log_fields, "retry_after_s": result.retry_after_seconds},
        )

        headers = (
            rate_limit_headers(result) if settings.app.rate_limit_include_headers else None
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=headers,
        )

    return enforce_rate_limit
