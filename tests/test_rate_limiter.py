"""Tests for the rate limiter decision service."""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from ratelimiter.adapters.counter_store.base import CounterState
from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore
from ratelimiter.core.errors import InvalidKeyError, StoreUnavailableError, UnknownPolicyKindError
from ratelimiter.services.policy_resolver import WindowKind
from ratelimiter.services.rate_limiter import RateLimiter, build_counter_key


def test_allows_up_to_limit_with_increasing_count(limiter) -> None:
    for n in range(1, 6):
        decision = limiter.check("user123", WindowKind.SECOND, 5)
        assert decision.allowed is True
        assert decision.current_count == n
        assert decision.remaining == 5 - n
        assert decision.retry_after_seconds is None


def test_denies_call_after_limit(limiter) -> None:
    for _ in range(3):
        limiter.check("user123", WindowKind.SECOND, 3)

    decision = limiter.check("user123", WindowKind.SECOND, 3)

    assert decision.allowed is False
    assert decision.current_count == 4
    assert decision.limit == 3
    assert decision.remaining == 0
    assert decision.retry_after_seconds == 1


def test_second_window_scenario(limiter, clock) -> None:
    results = [limiter.check("user123", "second", 5) for _ in range(6)]

    assert [d.allowed for d in results] == [True] * 5 + [False]

    clock.advance(1.001)
    decision = limiter.check("user123", "second", 5)

    assert decision.allowed is True
    assert decision.current_count == 1


def test_day_window_scenario(limiter, clock) -> None:
    results = [limiter.check("192.168.1.1", WindowKind.DAY, 3) for _ in range(4)]

    assert [d.allowed for d in results] == [True, True, True, False]
    assert results[-1].retry_after_seconds == 86_400

    clock.advance(3600)
    assert limiter.check("192.168.1.1", WindowKind.DAY, 3).allowed is False


def test_window_reset_clears_prior_rejections(limiter, clock) -> None:
    for _ in range(10):
        limiter.check("device-1", WindowKind.WEEK, 1)

    clock.advance(7 * 24 * 3600)
    decision = limiter.check("device-1", WindowKind.WEEK, 1)

    assert decision.allowed is True
    assert decision.current_count == 1


def test_distinct_keys_do_not_share_counters(limiter) -> None:
    for _ in range(3):
        limiter.check("alice", WindowKind.SECOND, 2)

    decision = limiter.check("bob", WindowKind.SECOND, 2)

    assert decision.allowed is True
    assert decision.current_count == 1


def test_distinct_window_kinds_do_not_share_counters(limiter) -> None:
    for _ in range(3):
        limiter.check("alice", WindowKind.SECOND, 2)

    decision = limiter.check("alice", WindowKind.DAY, 2)

    assert decision.allowed is True
    assert decision.current_count == 1


@pytest.mark.parametrize("override", [0, -1])
def test_non_positive_override_matches_default(store, resolver, override) -> None:
    with_override = RateLimiter(store, resolver, namespace="a")
    without_override = RateLimiter(store, resolver, namespace="b")

    left = [with_override.check("k", WindowKind.SECOND, override) for _ in range(4)]
    right = [without_override.check("k", WindowKind.SECOND) for _ in range(4)]

    assert left == right
    assert [d.allowed for d in left] == [True, True, False, False]


@pytest.mark.parametrize("key", ["", "   "])
def test_empty_key_is_rejected(limiter, store, key) -> None:
    with pytest.raises(InvalidKeyError):
        limiter.check(key, WindowKind.SECOND)

    assert len(store) == 0


def test_unknown_kind_is_rejected_without_touching_store(resolver) -> None:
    store = MagicMock()
    limiter = RateLimiter(store, resolver)

    with pytest.raises(UnknownPolicyKindError):
        limiter.check("k", "fortnight")

    store.increment.assert_not_called()


def test_makes_exactly_one_store_call(resolver) -> None:
    store = MagicMock()
    store.increment.return_value = CounterState(count=1, ttl_seconds=1.0)
    limiter = RateLimiter(store, resolver, namespace="ns")

    limiter.check("user123", WindowKind.SECOND, 5)

    store.increment.assert_called_once_with(
        "ns:second:user123",
        resolver.resolve(WindowKind.SECOND).window,
    )


def test_store_unavailable_propagates(resolver) -> None:
    store = MagicMock()
    store.increment.side_effect = StoreUnavailableError(code="store_unavailable", message="down")
    limiter = RateLimiter(store, resolver)

    with pytest.raises(StoreUnavailableError):
        limiter.check("k", WindowKind.SECOND)


def test_counter_key_layout() -> None:
    assert build_counter_key("rate-limit", WindowKind.DAY, "1.2.3.4") == "rate-limit:day:1.2.3.4"
    assert build_counter_key("ns", WindowKind.SECOND, "a:day") != build_counter_key(
        "ns", WindowKind.DAY, "a:second"
    )


def test_rejects_empty_namespace(store, resolver) -> None:
    with pytest.raises(ValueError):
        RateLimiter(store, resolver, namespace="")


@pytest.mark.parametrize("limit", [1, 5, 25])
def test_concurrent_burst_on_new_key_allows_exactly_limit(resolver, limit) -> None:
    limiter = RateLimiter(InMemoryCounterStore(), resolver)
    callers = 2 * limit
    barrier = threading.Barrier(callers)

    def call(_):
        barrier.wait()
        return limiter.check("fresh-key", WindowKind.DAY, limit)

    with ThreadPoolExecutor(max_workers=callers) as pool:
        decisions = list(pool.map(call, range(callers)))

    assert sum(d.allowed for d in decisions) == limit
    assert sum(not d.allowed for d in decisions) == limit
    assert sorted(d.current_count for d in decisions) == list(range(1, callers + 1))
