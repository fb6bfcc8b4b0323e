from __future__ import annotations

from fastapi import APIRouter, Depends

from dashguard.core.auth import requires_role
from dashguard.core.rate_limit import rate_limited
from dashguard.schemas.session import Role, Session

router = APIRouter(tags=["Session"])


@router.get(
    "/session",
    response_model=Session,
    dependencies=[Depends(rate_limited("session"))],
)
async def current_session(
    session: Session = Depends(requires_role([])),
) -> Session:
    """Return the caller's session.

    Any authenticated role may call this endpoint; anonymous callers get 401.
    """
    return session


@router.get(
    "/admin/session",
    response_model=Session,
    dependencies=[Depends(rate_limited("admin"))],
)
async def admin_session(
    session: Session = Depends(requires_role([Role.ADMIN])),
) -> Session:
    """Return the caller's session if they hold the ADMIN role (403 otherwise)."""
    return session
