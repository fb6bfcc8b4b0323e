"""Session resolution from API keys.

Each configured API key maps to a session user. The mapping lives in the
``APP_API_KEYS`` environment variable as comma-separated entries::

    key:user_id[:ROLE]

The role defaults to USER. The session is resolved once per request and
cached on ``request.state`` so the rate limiter and the authorization guard
see the same identity.

Design principles:
- Single Responsibility: resolution here, role checks in ``core.authz``
- Dependency Injection: used via FastAPI Depends() for loose coupling
- Configuration-driven: keys managed via env vars, not hardcoded
"""

from __future__ import annotations

import hashlib
import logging
from functools import lru_cache
from typing import Awaitable, Callable, Iterable

from fastapi import Request

from dashguard.core.authz import as_role_set, require_role
from dashguard.core.config import settings
from dashguard.core.errors import ValidationAppError
from dashguard.schemas.session import DEFAULT_ROLE, Role, Session, SessionUser

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

ANONYMOUS = Session(user=None)


def hash_secret(value: str) -> str:
    """Short, stable digest for logging identifiers without exposing them."""
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def parse_api_key_sessions(entries: str | None) -> dict[str, SessionUser]:
    """Parse ``key:user_id[:ROLE]`` entries into a key -> user mapping.

    Args:
        entries: Comma-separated key:user_id[:ROLE] entries, or None.

    Returns:
        Mapping of API key to the session user it authenticates.

    Raises:
        ValidationAppError: If an entry is malformed, names an unknown role,
            or repeats a key.

    Examples:
        >>> parse_api_key_sessions("k1:alice:ADMIN, k2:bob")["k2"].role
        <Role.USER: 'USER'>
        >>> parse_api_key_sessions(None)
        {}
    """
    if not entries:
        return {}

    sessions: dict[str, SessionUser] = {}
    for raw in entries.split(","):
        entry = raw.strip()
        if not entry:
            continue

        parts = [part.strip() for part in entry.split(":")]
        if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
            raise ValidationAppError(
                code="invalid_api_key_entry",
                message="API key entries must look like key:user_id[:ROLE]",
                details={"hint": "Check APP_API_KEYS", "entry": hash_secret(entry)},
            )

        key, user_id = parts[0], parts[1]
        role_name = parts[2] if len(parts) == 3 and parts[2] else DEFAULT_ROLE.value
        try:
            role = Role(role_name)
        except ValueError as exc:
            raise ValidationAppError(
                code="unknown_role",
                message=f"Unknown role {role_name!r} in API key entries",
                details={"hint": f"Roles are: {', '.join(r.value for r in Role)}"},
            ) from exc

        if key in sessions:
            raise ValidationAppError(
                code="duplicate_api_key",
                message="The same API key is configured more than once",
                details={"entry": hash_secret(key)},
            )
        sessions[key] = SessionUser(id=user_id, role=role)

    return sessions


@lru_cache(maxsize=8)
def _sessions_for(entries: str | None) -> dict[str, SessionUser]:
    return parse_api_key_sessions(entries)


def lookup_session(api_key: str | None) -> Session:
    """Map an API key to a session; unknown or missing keys are anonymous."""
    if not api_key:
        return ANONYMOUS

    user = _sessions_for(settings.app.api_keys).get(api_key)
    if user is None:
        logger.warning(
            "auth.unknown_key",
            extra={"api_key_hash": hash_secret(api_key)},
        )
        return ANONYMOUS

    return Session(user=user)


async def resolve_session(request: Request) -> Session:
    """FastAPI dependency resolving the caller's session once per request.

    Args:
        request: Incoming request; the X-API-Key header identifies the caller.

    Returns:
        The cached or freshly resolved session (anonymous when unknown).
    """
    cached = getattr(request.state, "session", None)
    if isinstance(cached, Session):
        return cached

    session = lookup_session(request.headers.get(API_KEY_HEADER))
    request.state.session = session

    if session.user is not None:
        logger.debug(
            "auth.session_resolved",
            extra={"user_id": session.user.id, "role": session.user.role.value},
        )
    return session


def requires_role(
    roles: Iterable[Role | str] | Role | str = (DEFAULT_ROLE,),
) -> Callable[[Request], Awaitable[Session]]:
    """Build a FastAPI dependency gating a route on the caller's role.

    Usage:
        @router.get("/admin", dependencies=[Depends(requires_role([Role.ADMIN]))])

    Pass an empty collection for an authenticated-only gate.
    """
    allowed = as_role_set(roles)

    async def dependency(request: Request) -> Session:
        session = await resolve_session(request)
        return require_role(session, allowed)

    return dependency
