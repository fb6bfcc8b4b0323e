"""Join code verification with brute-force lockout.

Wrong codes consume attempts from the caller's budget (keyed by client IP).
Once the budget is exhausted the caller is blocked for a while and receives
429 regardless of the code submitted. A correct code clears the budget.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from dashguard.core.config import settings
from dashguard.core.errors import ValidationAppError
from dashguard.schemas.join import JoinVerifyRequest, JoinVerifyResponse
from dashguard.services.attempt_guard import AttemptGuard

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Join"])


def get_attempt_guard(request: Request) -> AttemptGuard:
    guard = getattr(request.app.state, "attempt_guard", None)
    if guard is None:
        raise RuntimeError("app.state.attempt_guard is not configured")
    return guard


def _client_key(request: Request) -> str:
    client_host = request.client.host if request.client else "unknown"
    return f"join:ip:{client_host}"


@router.post("/join/verify", response_model=JoinVerifyResponse)
async def verify_join_code(
    payload: JoinVerifyRequest,
    request: Request,
    guard: AttemptGuard = Depends(get_attempt_guard),
) -> JoinVerifyResponse:
    """Check a join code against the configured one.

    Raises:
        ValidationAppError: No join code is configured (400).
        HTTPException: 429 while the caller is blocked.
    """
    expected = settings.app.join_code
    if not expected:
        raise ValidationAppError(
            code="join_code_not_configured",
            message="Join codes are not enabled on this server",
            details={"hint": "Set APP_JOIN_CODE"},
        )

    key = _client_key(request)
    decision = guard.check(key)
    if not decision.allowed:
        retry_after = decision.retry_after_seconds(guard.clock())
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=decision.message,
            headers={"Retry-After": str(retry_after)},
        )

    if hmac.compare_digest(payload.code.encode(), expected.encode()):
        guard.succeed(key)
        logger.info("join.verified")
        # The budget was just cleared.
        return JoinVerifyResponse(valid=True, remaining=guard.max_attempts)

    logger.info("join.rejected", extra={"remaining": decision.remaining})
    return JoinVerifyResponse(
        valid=False,
        remaining=decision.remaining,
        message="Invalid join code",
    )
