from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitStatus(BaseModel):
    """Counter state observed for the request that was just allowed."""

    window_kind: str = Field(..., description="Window the request was counted in")
    limit: int = Field(..., description="Max requests per window")
    current_count: int = Field(..., description="Requests counted in the current window")
    remaining: int = Field(..., description="Requests left in the current window")


class ActionResponse(BaseModel):
    """Response returned by rate-limited action endpoints."""

    message: str = Field(..., description="Human-readable outcome")
    rate_limit: RateLimitStatus | None = Field(
        None,
        description="Rate limit status (absent when limiting is disabled or bypassed)",
    )


class ReadinessResponse(BaseModel):
    status: str
    store: str
