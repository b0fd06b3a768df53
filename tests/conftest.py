"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is loaded and pins the settings the tests
rely on before anything imports the settings module.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("LIMITER_STORE_BACKEND", "memory")
os.environ.setdefault("LIMITER_MAX_REQUESTS_PER_SECOND", "2")
os.environ.setdefault("LIMITER_MAX_REQUESTS_PER_DAY", "10")
os.environ.setdefault("LIMITER_MAX_REQUESTS_PER_WEEK", "5")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore  # noqa: E402
from ratelimiter.services.policy_resolver import PolicyResolver, WindowKind  # noqa: E402
from ratelimiter.services.rate_limiter import RateLimiter  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver({WindowKind.SECOND: 2, WindowKind.DAY: 10, WindowKind.WEEK: 5})


@pytest.fixture
def limiter(store: InMemoryCounterStore, resolver: PolicyResolver) -> RateLimiter:
    return RateLimiter(store, resolver)
