"""Pydantic schemas for sessions and roles."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Dashboard roles. Values are matched exactly and case-sensitively."""

    USER = "USER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    DIRECTOR = "DIRECTOR"
    MANAGER = "MANAGER"
    SALESPERSON = "SALESPERSON"


DEFAULT_ROLE = Role.USER


class SessionUser(BaseModel):
    """Identity attached to an authenticated session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable user identifier.")
    role: Role = Field(
        default=DEFAULT_ROLE,
        description="User role; USER when the identity provider supplies none.",
    )
    email: str | None = Field(default=None, description="Contact email, if known.")


class Session(BaseModel):
    """Session resolved once per request at the HTTP boundary.

    ``user`` is None for anonymous callers.
    """

    model_config = ConfigDict(frozen=True)

    user: SessionUser | None = Field(
        default=None,
        description="Authenticated identity, or null when unauthenticated.",
    )

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
