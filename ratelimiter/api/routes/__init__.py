from __future__ import annotations

from ratelimiter.api.routes.actions import router as actions_router
from ratelimiter.api.routes.health import router as health_router

__all__ = ["actions_router", "health_router"]
