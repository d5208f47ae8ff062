from __future__ import annotations

import threading
from typing import List

from addonhub.core.addons.cache import CACHE_TTL_SECONDS, ExpiringCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetch:
    def __init__(self, *values) -> None:
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> List[str]:
        self.calls += 1
        value = self.values[min(self.calls, len(self.values)) - 1]
        if isinstance(value, Exception):
            raise value
        return value


def test_default_ttl_is_fifteen_minutes() -> None:
    assert CACHE_TTL_SECONDS == 900


def test_value_is_reused_within_ttl() -> None:
    clock = FakeClock()
    fetch = CountingFetch(["a"], ["b"])
    cache = ExpiringCache(fetch, clock=clock)

    assert cache.get_value() == ["a"]
    clock.advance(CACHE_TTL_SECONDS - 1)
    assert cache.get_value() == ["a"]
    assert fetch.calls == 1

    clock.advance(1)
    assert cache.get_value() == ["b"]
    assert fetch.calls == 2


def test_failure_serves_previous_value_and_retries() -> None:
    clock = FakeClock()
    fetch = CountingFetch(["a"], RuntimeError("down"), ["c"])
    cache = ExpiringCache(fetch, clock=clock)

    assert cache.get_value() == ["a"]
    clock.advance(CACHE_TTL_SECONDS)
    assert cache.get_value() == ["a"]
    # Timestamp untouched by the failure, so the next call fetches again
    assert cache.get_value() == ["c"]
    assert fetch.calls == 3
    assert cache.get_stats()["failures"] == 1


def test_failure_on_first_fetch_returns_empty_list() -> None:
    cache = ExpiringCache(CountingFetch(RuntimeError("down")))
    assert cache.get_value() == []


def test_invalidate_forces_refetch() -> None:
    fetch = CountingFetch(["a"], ["b"])
    cache = ExpiringCache(fetch, clock=FakeClock())

    cache.get_value()
    cache.invalidate()
    assert cache.get_value() == ["b"]


def test_invalidate_during_fetch_discards_result() -> None:
    cache = None
    results = iter([["stale"], ["fresh"]])

    def fetch() -> List[str]:
        value = next(results)
        if value == ["stale"]:
            cache.invalidate()
        return value

    cache = ExpiringCache(fetch, clock=FakeClock())

    assert cache.get_value() == ["stale"]
    assert cache.get_value() == ["fresh"]
    assert cache.get_value() == ["fresh"]


def test_concurrent_callers_share_one_fetch() -> None:
    started = threading.Event()
    release = threading.Event()
    calls = []

    def fetch() -> List[str]:
        calls.append(1)
        started.set()
        release.wait(5)
        return ["a"]

    cache = ExpiringCache(fetch, clock=FakeClock())
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get_value())) for _ in range(4)]

    threads[0].start()
    assert started.wait(5)
    for t in threads[1:]:
        t.start()
    release.set()
    for t in threads:
        t.join(5)

    assert len(calls) == 1
    assert results == [["a"]] * 4
    stats = cache.get_stats()
    assert (stats["fetches"], stats["misses"], stats["hits"]) == (1, 1, 3)


def test_caller_gets_previous_value_while_refresh_in_flight() -> None:
    clock = FakeClock()
    started = threading.Event()
    release = threading.Event()
    values = iter([["old"], ["new"]])

    def fetch() -> List[str]:
        value = next(values)
        if value == ["new"]:
            started.set()
            release.wait(5)
        return value

    cache = ExpiringCache(fetch, clock=clock)
    assert cache.get_value() == ["old"]
    clock.advance(CACHE_TTL_SECONDS)

    refresher = threading.Thread(target=cache.get_value)
    refresher.start()
    assert started.wait(5)

    assert cache.get_value() == ["old"]

    release.set()
    refresher.join(5)
    assert cache.get_value() == ["new"]
