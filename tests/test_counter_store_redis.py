"""Unit tests for the Redis counter store (client mocked)."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ratelimiter.adapters.counter_store.redis_store import (
    INCREMENT_WITH_WINDOW_SCRIPT,
    RedisCounterStore,
)
from ratelimiter.core.errors import StoreUnavailableError


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.register_script.return_value = MagicMock(return_value=[1, 1000])
    return client


def test_registers_increment_script(client) -> None:
    RedisCounterStore(client)

    client.register_script.assert_called_once_with(INCREMENT_WITH_WINDOW_SCRIPT)


def test_increment_runs_script_once_with_window_in_ms(client) -> None:
    store = RedisCounterStore(client)
    script = client.register_script.return_value
    script.return_value = [3, 86_000_000]

    state = store.increment("rate-limit:day:1.2.3.4", timedelta(days=1))

    script.assert_called_once_with(keys=["rate-limit:day:1.2.3.4"], args=[86_400_000])
    assert state.count == 3
    assert state.ttl_seconds == pytest.approx(86_000.0)


def test_increment_never_issues_separate_commands(client) -> None:
    store = RedisCounterStore(client)

    store.increment_with_window("k", timedelta(seconds=1))

    client.incr.assert_not_called()
    client.expire.assert_not_called()
    client.get.assert_not_called()
    client.set.assert_not_called()


def test_script_sets_expiry_only_for_new_or_ttl_less_counters() -> None:
    assert "INCR" in INCREMENT_WITH_WINDOW_SCRIPT
    assert "PEXPIRE" in INCREMENT_WITH_WINDOW_SCRIPT
    assert "count == 1 or ttl < 0" in INCREMENT_WITH_WINDOW_SCRIPT


@pytest.mark.parametrize("error", [RedisConnectionError("down"), RedisTimeoutError("slow")])
def test_connection_failures_map_to_store_unavailable(client, error) -> None:
    store = RedisCounterStore(client)
    client.register_script.return_value.side_effect = error

    with pytest.raises(StoreUnavailableError) as exc_info:
        store.increment("k", timedelta(seconds=1))

    assert exc_info.value.code == "store_unavailable"
    assert exc_info.value.__cause__ is error


def test_other_redis_errors_propagate(client) -> None:
    store = RedisCounterStore(client)
    client.register_script.return_value.side_effect = ResponseError("bad script")

    with pytest.raises(ResponseError):
        store.increment("k", timedelta(seconds=1))


def test_sub_millisecond_window_rejected(client) -> None:
    store = RedisCounterStore(client)

    with pytest.raises(ValueError):
        store.increment("k", timedelta(microseconds=10))


def test_ping(client) -> None:
    store = RedisCounterStore(client)
    client.ping.return_value = True
    assert store.ping() is True

    client.ping.side_effect = RedisConnectionError("down")
    assert store.ping() is False


def test_from_url_applies_timeouts(monkeypatch) -> None:
    created = {}

    def fake_from_url(url, **kwargs):
        created["url"] = url
        created.update(kwargs)
        return MagicMock()

    monkeypatch.setattr("redis.Redis.from_url", fake_from_url)

    RedisCounterStore.from_url("redis://cache:6379/1", socket_timeout_seconds=0.25)

    assert created["url"] == "redis://cache:6379/1"
    assert created["socket_timeout"] == 0.25
    assert created["socket_connect_timeout"] == 0.25
