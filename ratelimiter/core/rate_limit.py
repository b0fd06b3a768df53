"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiter service into the HTTP layer.

Design goals:
- Explicit policy: each route declares a RoutePolicy (header, window kind,
  optional limit) at import time; nothing is looked up by reflection.
- Swap-friendly: the counter store is built by a factory from settings.
- Outage handling: fail-closed (503) by default, fail-open when configured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Annotated, Callable

from fastapi import Depends, Request

from ratelimiter.adapters.counter_store.factory import create_counter_store
from ratelimiter.core.config import settings
from ratelimiter.core.errors import (
    RateLimitExceededError,
    StoreUnavailableError,
    ValidationAppError,
)
from ratelimiter.services.policy_resolver import PolicyResolver, WindowKind
from ratelimiter.services.rate_limiter import Decision, RateLimiter, hash_logical_key

logger = logging.getLogger(__name__)


_limiter: RateLimiter | None = None


@dataclass(frozen=True)
class RoutePolicy:
    """Rate limit declaration attached to one route.

    Attributes:
        name: Policy name, also the key for per-endpoint settings overrides.
        key_header: Request header holding the caller identity.
        window_kind: Window kind counted against.
        override_limit: Limit for this route; None uses the window default.
        exceeded_message: Message returned with HTTP 429.
    """

    name: str
    key_header: str
    window_kind: WindowKind
    override_limit: int | None = None
    exceeded_message: str | None = None

    def with_settings_override(self) -> RoutePolicy:
        """Return this policy with any LIMITER_ENDPOINTS entry applied."""

        override = settings.limiter.endpoints.get(self.name)
        if override is None:
            return self

        policy = self
        if override.key:
            policy = replace(policy, key_header=override.key)
        if override.type:
            policy = replace(policy, window_kind=WindowKind.parse(override.type))
        if override.limit is not None:
            policy = replace(policy, override_limit=override.limit)
        return policy


def get_rate_limiter() -> RateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module so the in-memory store keeps its
    counters across requests.

    Returns:
        RateLimiter: Configured limiter instance.
    """

    global _limiter

    if _limiter is None:
        _limiter = RateLimiter(
            create_counter_store(),
            PolicyResolver.from_settings(),
            namespace=settings.limiter.key_namespace,
        )
        logger.info(
            "rate_limit.limiter_created",
            extra={
                "backend": settings.limiter.store_backend,
                "fail_open": settings.limiter.fail_open,
            },
        )

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next call rebuilds it from settings."""

    global _limiter
    _limiter = None


def _build_exceeded_error(policy: RoutePolicy, decision: Decision) -> RateLimitExceededError:
    message = policy.exceeded_message or (
        f"Rate limit exceeded for policy {policy.name} ({decision.window_kind.value})"
    )
    return RateLimitExceededError(
        code="rate_limit_exceeded",
        message=message,
        details={
            "policy": policy.name,
            "window_kind": decision.window_kind.value,
            "limit": decision.limit,
            "current_count": decision.current_count,
            "retry_after": decision.retry_after_seconds or 0,
        },
    )


def rate_limited(policy: RoutePolicy) -> Callable[..., Decision | None]:
    """Build a FastAPI dependency enforcing `policy`.

    Settings overrides are merged and the window kind is validated once, when
    the dependency is built, so a misconfigured route fails at startup.

    Usage:
        @router.post("/posts", dependencies=[Depends(rate_limited(POSTS_POLICY))])

    Args:
        policy: Route policy declaration.

    Returns:
        Dependency callable returning the Decision (None when limiting is
        disabled or the store is down in fail-open mode).

    Raises:
        UnknownPolicyKindError: If the effective window kind is unsupported.
    """

    effective = policy.with_settings_override()
    WindowKind.parse(effective.window_kind)

    # Plain def: FastAPI runs it in the threadpool, so blocking store I/O
    # does not stall the event loop.
    def enforce_rate_limit(
        request: Request,
        limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    ) -> Decision | None:
        if not settings.app.rate_limit_enabled:
            return None

        logical_key = request.headers.get(effective.key_header)
        if not logical_key:
            logger.warning(
                "rate_limit.missing_key_header",
                extra={"policy": effective.name, "header": effective.key_header},
            )
            raise ValidationAppError(
                code="missing_rate_limit_header",
                message=f"Required header {effective.key_header} is missing",
                details={"header": effective.key_header, "policy": effective.name},
            )

        try:
            decision = limiter.check(logical_key, effective.window_kind, effective.override_limit)
        except StoreUnavailableError:
            if not settings.limiter.fail_open:
                raise
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "policy": effective.name,
                    "key_hash": hash_logical_key(logical_key),
                    "fail_open": True,
                },
            )
            return None

        if not decision.allowed:
            raise _build_exceeded_error(effective, decision)

        request.state.rate_limit_decision = decision
        return decision

    enforce_rate_limit.__name__ = f"enforce_rate_limit_{effective.name}"
    return enforce_rate_limit
