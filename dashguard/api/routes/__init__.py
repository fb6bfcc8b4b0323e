from __future__ import annotations

from dashguard.api.routes.health import router as health_router
from dashguard.api.routes.join import router as join_router
from dashguard.api.routes.session import router as session_router

__all__ = ["health_router", "join_router", "session_router"]
