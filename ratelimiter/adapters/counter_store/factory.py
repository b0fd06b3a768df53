"""Factory pattern for creating counter store instances."""

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore
from ratelimiter.adapters.counter_store.redis_store import RedisCounterStore
from ratelimiter.core.config import LimiterSettings, settings
from ratelimiter.core.errors import ValidationAppError


def create_counter_store(limiter_settings: LimiterSettings | None = None) -> AbstractCounterStore:
    """Factory function to instantiate the configured counter store.

    Reads configuration from ratelimiter.core.config.settings unless explicit
    settings are passed.

    Returns:
        AbstractCounterStore: Configured counter store instance.

    Raises:
        ValidationAppError: If the backend is unknown or misconfigured.
    """
    cfg = limiter_settings or settings.limiter
    backend = cfg.store_backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        if not cfg.redis_url:
            raise ValidationAppError(
                code="store_missing_redis_url",
                message="Redis counter store requires LIMITER_REDIS_URL",
            )
        return RedisCounterStore.from_url(
            cfg.redis_url,
            socket_timeout_seconds=cfg.redis_socket_timeout_seconds,
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis"
        ),
    )
