"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from ratelimiter.api.routes import actions_router, health_router
from ratelimiter.core.config import settings
from ratelimiter.core.exception_handlers import setup_exception_handlers
from ratelimiter.core.logging import configure_logging
from ratelimiter.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Rate Limiter API",
        description=(
            "Fixed-window rate limiting backed by a shared counter store. "
            "Each action endpoint is limited per caller identity header; "
            "throttled requests get HTTP 429, counter store outages HTTP 503."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(actions_router, prefix="/api")
    app.include_router(health_router)

    return app
