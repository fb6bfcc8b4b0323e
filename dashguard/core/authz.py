"""Role-based authorization guard.

The session is resolved once per request at the HTTP boundary (see
``dashguard.core.auth``) and handed to ``require_role`` explicitly. The guard
itself performs no I/O.

Rules:
- No session, or a session without a user -> UNAUTHORIZED.
- Non-empty ``roles`` not containing the user's role -> FORBIDDEN.
- Empty ``roles`` -> any authenticated user passes.

Role matching is exact and case-sensitive with no hierarchy: ADMIN is not
implicitly allowed where only USER is listed.
"""

from __future__ import annotations

import logging
from typing import Iterable

from dashguard.core.errors import AuthenticationAppError, AuthorizationAppError
from dashguard.schemas.session import DEFAULT_ROLE, Role, Session

logger = logging.getLogger(__name__)


def _role_value(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else role


def as_role_set(roles: Iterable[Role | str] | Role | str) -> frozenset[str]:
    """Normalize an allow-list to role names.

    A single role (enum member or plain string) counts as a one-element list,
    never as an iterable of characters.
    """
    if isinstance(roles, str):
        roles = (roles,)
    return frozenset(_role_value(role) for role in roles)


def require_role(
    session: Session | None,
    roles: Iterable[Role | str] | Role | str = (DEFAULT_ROLE,),
) -> Session:
    """Return ``session`` if its user is authenticated and holds an allowed role.

    Args:
        session: Session resolved for the current request, or None.
        roles: Allowed roles. Enum members and plain strings are both accepted,
            as is a single role on its own.

    Returns:
        The same session object, unchanged.

    Raises:
        AuthenticationAppError: No authenticated identity present.
        AuthorizationAppError: Identity present but its role is not allowed.
    """
    if session is None or session.user is None:
        logger.info("authz.unauthenticated")
        raise AuthenticationAppError(
            code="unauthorized",
            message="Authentication required",
        )

    allowed = as_role_set(roles)
    actual = _role_value(session.user.role or DEFAULT_ROLE)

    if allowed and actual not in allowed:
        logger.warning(
            "authz.forbidden",
            extra={
                "user_id": session.user.id,
                "role": actual,
                "required_roles": sorted(allowed),
            },
        )
        raise AuthorizationAppError(
            code="forbidden",
            message="Insufficient role for this resource",
            details={"required_roles": sorted(allowed), "actual_role": actual},
        )

    return session
