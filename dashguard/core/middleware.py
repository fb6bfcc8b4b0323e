"""HTTP middleware for request ID propagation and access logging.

The middleware:
- Accepts the incoming request id header or generates a UUID
- Stores request_id in contextvars so every log line in the request carries it
- Logs one ``http.request`` line per request with status, duration and the
  resolved user (when a route resolved a session)
- Echoes the request id and total duration in response headers
- Clears context after request completion to prevent context leaks

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from dashguard.core.config import settings
from dashguard.core.logging import clear_request_id, set_request_id

logger = logging.getLogger("dashguard.request")


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return str(getattr(route, "path", request.url.path))


def _session_user_id(request: Request) -> str | None:
    session = getattr(request.state, "session", None)
    user = getattr(session, "user", None)
    return getattr(user, "id", None)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Attach a correlation id to the request, its logs and its response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` (or the
            configured header) and ``X-Request-Duration-ms`` added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    request.state.request_id = request_id
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": _route_path(request),
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": _session_user_id(request),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
