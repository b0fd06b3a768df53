"""Redis-backed fixed-window counter store.

The increment, the expiry on first creation and the TTL read run inside one
Lua script, so Redis executes them as a single atomic step. No client-side
get-then-set sequence is ever issued.
"""

from __future__ import annotations

import logging
from datetime import timedelta

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ratelimiter.adapters.counter_store.base import AbstractCounterStore, CounterState
from ratelimiter.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


# KEYS[1] = counter key, ARGV[1] = window in milliseconds.
# A counter without TTL (PTTL == -1) is treated as freshly created so a key
# can never outlive its window.
INCREMENT_WITH_WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
local ttl = redis.call('PTTL', KEYS[1])
if count == 1 or ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisCounterStore(AbstractCounterStore):
    """Counter store shared by all instances through Redis.

    Timeouts are enforced by the Redis client (socket_timeout /
    socket_connect_timeout), never by the limiter.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._script = client.register_script(INCREMENT_WITH_WINDOW_SCRIPT)

    @classmethod
    def from_url(cls, url: str, *, socket_timeout_seconds: float = 0.5) -> RedisCounterStore:
        """Create a store with a client connected to `url`.

        Args:
            url: Redis URL (redis://host:port/db).
            socket_timeout_seconds: Connect and per-command timeout.
        """
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout_seconds,
            socket_connect_timeout=socket_timeout_seconds,
        )
        return cls(client)

    def increment(self, key: str, window: timedelta) -> CounterState:
        window_ms = int(window.total_seconds() * 1000)
        if window_ms < 1:
            raise ValueError("window must be at least 1 millisecond")

        try:
            count, ttl_ms = self._script(keys=[key], args=[window_ms])
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.error(
                "counter_store.unavailable",
                extra={
                    "backend": "redis",
                    "error_type": type(exc).__name__,
                },
            )
            raise StoreUnavailableError(
                code="store_unavailable",
                message="Rate limit counter store is unavailable",
                details={"backend": "redis"},
            ) from exc

        return CounterState(count=int(count), ttl_seconds=max(0, int(ttl_ms)) / 1000)

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except (RedisConnectionError, RedisTimeoutError):
            logger.warning("counter_store.ping_failed", extra={"backend": "redis"})
            return False
