from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ratelimiter.core.rate_limit import get_rate_limiter
from ratelimiter.schemas.actions import ReadinessResponse
from ratelimiter.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check(
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
):
    """Readiness check: verifies the counter store answers a ping.

    Returns 503 while the store is unreachable so load balancers stop routing
    traffic to an instance that would reject (or bypass) every rate check.
    """

    if limiter.store.ping():
        return ReadinessResponse(status="ok", store="ok")

    logger.warning("health.store_unreachable")
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(status="unavailable", store="unreachable").model_dump(),
    )
