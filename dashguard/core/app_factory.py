"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the process-local protection state: the rate limiter and the join code
attempt guard live on ``app.state`` so each app instance (and each test) gets
its own.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

from fastapi import FastAPI

from dashguard.adapters.rate_limit.base import AbstractRateLimiter
from dashguard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from dashguard.api.routes import health_router, join_router, session_router
from dashguard.core.auth import parse_api_key_sessions
from dashguard.core.config import settings
from dashguard.core.exception_handlers import setup_exception_handlers
from dashguard.core.logging import configure_logging
from dashguard.core.middleware import request_id_middleware
from dashguard.core.openapi import apply_openapi_customizations
from dashguard.services.attempt_guard import AttemptGuard

logger = logging.getLogger(__name__)


async def prune_attempts_periodically(guard: AttemptGuard, interval_ms: int) -> None:
    """Drop idle join attempt records every ``interval_ms`` until cancelled."""
    while True:
        await asyncio.sleep(interval_ms / 1000)
        guard.prune()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the attempt guard cleanup for as long as the app is serving."""
    interval_ms = settings.app.join_prune_interval_ms
    task: asyncio.Task[None] | None = None
    if interval_ms > 0:
        task = asyncio.create_task(
            prune_attempts_periodically(app.state.attempt_guard, interval_ms)
        )
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    attempt_guard: AttemptGuard | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter store to use; a fresh in-memory one by default.
        attempt_guard: Join code lockout; built from settings by default.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ValidationAppError: If APP_API_KEYS is malformed.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # Fail at startup rather than on the first authenticated request
    configured_keys = parse_api_key_sessions(settings.app.api_keys)

    app = FastAPI(
        title="Dashguard API",
        description=(
            "Request protection for the sales dashboard: per-route fixed-window "
            "rate limiting, role-gated endpoints resolved from X-API-Key, and "
            "join code verification with brute-force lockout."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    if rate_limiter is None:
        rate_limiter = InMemoryFixedWindowRateLimiter()
    if attempt_guard is None:
        attempt_guard = AttemptGuard(
            max_attempts=settings.app.join_max_attempts,
            window_ms=settings.app.join_window_ms,
            block_ms=settings.app.join_block_ms,
        )
    app.state.rate_limiter = rate_limiter
    app.state.attempt_guard = attempt_guard

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(session_router, prefix="/v1")
    app.include_router(join_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "api_keys_configured": len(configured_keys),
            "rate_limit_enabled": settings.app.rate_limit_enabled,
        },
    )
    return app
