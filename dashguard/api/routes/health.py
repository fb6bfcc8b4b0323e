from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check.

    Also reports how many keys the in-process limiter is tracking. Records are
    only dropped by an explicit prune, so a steadily growing number here is
    the signal to schedule one.
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    tracked = len(limiter) if limiter is not None else 0
    return {"status": "ok", "rate_limit_keys": tracked}
