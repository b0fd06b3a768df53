"""In-memory fixed-window counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from ratelimiter.adapters.counter_store.base import AbstractCounterStore, CounterState

logger = logging.getLogger(__name__)


@dataclass
class _Counter:
    count: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping counters in a process-local dict.

    Expired counters are treated as absent on access and swept lazily, at most
    once per `sweep_interval_seconds`.

    Important:
        This store is per-process only. If the API runs with multiple workers,
        each worker keeps its own independent counters. Use the Redis store
        for shared limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the in-memory counter store.

        Args:
            clock: Time source returning seconds.
            sweep_interval_seconds: Minimum time between expired-entry sweeps.
        """
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._counters: dict[str, _Counter] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    def increment(self, key: str, window: timedelta) -> CounterState:
        window_seconds = window.total_seconds()
        if window_seconds <= 0:
            raise ValueError("window must be positive")

        with self._lock:
            now = self._clock()
            self._sweep_expired_locked(now)

            counter = self._counters.get(key)
            if counter is None or counter.expires_at <= now:
                counter = _Counter(count=1, expires_at=now + window_seconds)
                self._counters[key] = counter
            else:
                counter.count += 1

            return CounterState(count=counter.count, ttl_seconds=counter.expires_at - now)

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop every counter."""

        with self._lock:
            self._counters.clear()

    def _sweep_expired_locked(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        expired = [k for k, counter in self._counters.items() if counter.expires_at <= now]
        for key in expired:
            del self._counters[key]
        self._last_sweep = now
        if expired:
            logger.debug("counter_store.swept", extra={"expired": len(expired), "size": len(self._counters)})
