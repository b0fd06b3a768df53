"""Counter store interfaces.

The limiter depends on this abstraction (not the concrete implementation) so
the storage backend can be swapped (in-memory, Redis) without touching the
decision logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class CounterState:
    """Counter value observed by one atomic increment.

    Attributes:
        count: Counter value after the increment.
        ttl_seconds: Time left before the counter expires.
    """

    count: int
    ttl_seconds: float


class AbstractCounterStore(ABC):
    """Interface for shared fixed-window counters."""

    @abstractmethod
    def increment(self, key: str, window: timedelta) -> CounterState:
        """Atomically increment the counter for key.

        The first increment of an absent or expired key yields 1 and sets the
        counter to expire after `window`. Later increments within the live
        window add 1 and leave the expiry untouched. Both cases happen in a
        single atomic step as seen by any other caller.

        Args:
            key: Fully qualified counter key.
            window: Window length applied as TTL on first creation.

        Returns:
            CounterState with the new count and remaining TTL.

        Raises:
            StoreUnavailableError: If the backing store cannot be reached.
        """
        raise NotImplementedError

    def increment_with_window(self, key: str, window: timedelta) -> int:
        """Increment the counter for key and return the current count."""
        return self.increment(key, window).count

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the backing store is reachable."""
        raise NotImplementedError
