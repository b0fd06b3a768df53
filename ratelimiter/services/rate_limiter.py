"""Rate limiting decision service.

Combines policy resolution and one atomic counter increment into an
allow/deny decision. The service holds no counter state: every decision is
made from the value returned by the store for this call.
"""

from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.core.errors import InvalidKeyError
from ratelimiter.services.policy_resolver import PolicyResolver, WindowKind

logger = logging.getLogger(__name__)


DEFAULT_NAMESPACE = "rate-limit"


@dataclass(frozen=True)
class Decision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        current_count: Counter value observed for this call.
        limit: Max requests per window for the applied policy.
        window_kind: Window the counter belongs to.
        retry_after_seconds: Seconds until the window resets (None when allowed).
    """

    allowed: bool
    current_count: int
    limit: int
    window_kind: WindowKind
    retry_after_seconds: int | None = None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current_count)


def build_counter_key(namespace: str, window_kind: WindowKind, logical_key: str) -> str:
    """Compose the store key for (logical_key, window_kind).

    The logical key goes last so arbitrary characters in it cannot make two
    distinct pairs collide.
    """
    return f"{namespace}:{window_kind.value}:{logical_key}"


def hash_logical_key(logical_key: str) -> str:
    """Hash a logical key for logging without exposing caller identity."""
    return hashlib.sha256(logical_key.encode()).hexdigest()[:16]


class RateLimiter:
    """Fixed-window rate limiter over a shared counter store."""

    def __init__(
        self,
        store: AbstractCounterStore,
        resolver: PolicyResolver,
        *,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        if not namespace:
            raise ValueError("namespace must be a non-empty string")
        self._store = store
        self._resolver = resolver
        self._namespace = namespace

    @property
    def store(self) -> AbstractCounterStore:
        return self._store

    @property
    def resolver(self) -> PolicyResolver:
        return self._resolver

    def check(
        self,
        logical_key: str,
        window_kind: WindowKind | str,
        override_limit: int | None = None,
    ) -> Decision:
        """Count one request for logical_key and decide whether it is allowed.

        Exactly one store round trip is made. A count equal to the limit is
        still allowed; only a count above it is rejected.

        Args:
            logical_key: Caller identity (user id, IP, device id).
            window_kind: Window kind to count against.
            override_limit: Optional per-call limit; non-positive means default.

        Returns:
            Decision for this request.

        Raises:
            InvalidKeyError: If logical_key is empty.
            UnknownPolicyKindError: If window_kind is not supported.
            StoreUnavailableError: If the counter store cannot be reached.
        """
        if not logical_key or not logical_key.strip():
            raise InvalidKeyError(
                code="invalid_key",
                message="Rate limit key must be a non-empty string",
            )

        policy = self._resolver.resolve(window_kind, override_limit)
        counter_key = build_counter_key(self._namespace, policy.window_kind, logical_key)
        state = self._store.increment(counter_key, policy.window)

        allowed = state.count <= policy.limit
        decision = Decision(
            allowed=allowed,
            current_count=state.count,
            limit=policy.limit,
            window_kind=policy.window_kind,
            retry_after_seconds=None if allowed else max(1, math.ceil(state.ttl_seconds)),
        )

        log_extra = {
            "key_hash": hash_logical_key(logical_key),
            "window_kind": policy.window_kind.value,
            "limit": decision.limit,
            "current_count": decision.current_count,
        }
        if allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
        else:
            logger.warning(
                "rate_limit.exceeded",
                extra={**log_extra, "retry_after_s": decision.retry_after_seconds},
            )
        return decision
