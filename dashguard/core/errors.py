"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Authentication and authorization failures carry an ``AuthErrorKind`` so the
HTTP layer can map them to 401 and 403 without inspecting messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    required_roles: list[str]
    actual_role: str
    entry: str
    http_status: int
    retry_after: float
    request_id: str
    context: NotRequired[dict[str, Any]]


class AuthErrorKind(str, Enum):
    """Failure categories raised by the authorization guard."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    @property
    def http_status(self) -> int:
        return 401 if self is AuthErrorKind.UNAUTHORIZED else 403


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when no authenticated identity is present."""

    kind: ClassVar[AuthErrorKind] = AuthErrorKind.UNAUTHORIZED


class AuthorizationAppError(AppError):
    """Raised when an authenticated identity lacks a permitted role."""

    kind: ClassVar[AuthErrorKind] = AuthErrorKind.FORBIDDEN
