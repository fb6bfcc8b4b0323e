"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- ValidationAppError -> 400
- AuthenticationAppError (UNAUTHORIZED) -> 401
- AuthorizationAppError (FORBIDDEN) -> 403
- Unexpected Exception -> generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dashguard.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
)
from dashguard.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_for(exc: AppError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, (AuthenticationAppError, AuthorizationAppError)):
        return exc.kind.http_status
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.kind: UNAUTHORIZED / FORBIDDEN for auth failures
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content: dict = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    kind = getattr(exc, "kind", None)
    if kind is not None:
        error_content["kind"] = kind.value
    if exc.details:
        error_content["details"] = exc.details

    headers = {"WWW-Authenticate": "ApiKey"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
