from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ratelimiter.core.rate_limit import RoutePolicy, rate_limited
from ratelimiter.schemas.actions import ActionResponse, RateLimitStatus
from ratelimiter.services.policy_resolver import WindowKind
from ratelimiter.services.rate_limiter import Decision

router = APIRouter(tags=["Actions"])


POSTS_POLICY = RoutePolicy(
    name="posts",
    key_header="X-User-Id",
    window_kind=WindowKind.SECOND,
    override_limit=5,
)
ACCOUNTS_POLICY = RoutePolicy(
    name="accounts",
    key_header="X-IP-Address",
    window_kind=WindowKind.DAY,
    override_limit=3,
    exceeded_message="Daily account creation limit reached. Please try again tomorrow.",
)
REWARDS_POLICY = RoutePolicy(
    name="rewards",
    key_header="X-Device-Id",
    window_kind=WindowKind.WEEK,
    override_limit=1,
    exceeded_message="Weekly reward claim limit reached. Please try again next week.",
)


def _build_response(message: str, decision: Decision | None) -> ActionResponse:
    if decision is None:
        return ActionResponse(message=message)
    return ActionResponse(
        message=message,
        rate_limit=RateLimitStatus(
            window_kind=decision.window_kind.value,
            limit=decision.limit,
            current_count=decision.current_count,
            remaining=decision.remaining,
        ),
    )


@router.post("/posts", response_model=ActionResponse)
def create_post(
    decision: Annotated[Decision | None, Depends(rate_limited(POSTS_POLICY))],
) -> ActionResponse:
    """Create a post. Limited per user (X-User-Id) per second."""

    return _build_response("Post created successfully", decision)


@router.post("/accounts", response_model=ActionResponse)
def create_account(
    decision: Annotated[Decision | None, Depends(rate_limited(ACCOUNTS_POLICY))],
) -> ActionResponse:
    """Create an account. Limited per client IP (X-IP-Address) per day."""

    return _build_response("Account created successfully", decision)


@router.post("/rewards", response_model=ActionResponse)
def claim_reward(
    decision: Annotated[Decision | None, Depends(rate_limited(REWARDS_POLICY))],
) -> ActionResponse:
    """Claim a reward. Limited per device (X-Device-Id) per week."""

    return _build_response("Reward claimed successfully", decision)
