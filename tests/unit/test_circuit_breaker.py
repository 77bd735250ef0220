from __future__ import annotations

import threading

import pytest

from extsearch.search.circuit_breaker import CircuitBreaker


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cb(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker(threshold=3, window_seconds=300, clock=clock)


def test_trips_at_threshold(cb: CircuitBreaker):
    assert cb.record_failure("x") == 1
    assert cb.record_failure("x") == 2
    assert not cb.is_open("x")
    assert cb.record_failure("x") == 3
    assert cb.is_open("x")
    assert not cb.is_open("y")


def test_resets_after_window_without_manual_reset(cb: CircuitBreaker, clock: FakeClock):
    for _ in range(3):
        cb.record_failure("x")
    clock.advance(301)
    assert not cb.is_open("x")
    assert cb.failure_count("x") == 0
    assert cb.snapshot() == {}


def test_window_is_measured_from_last_failure(cb: CircuitBreaker, clock: FakeClock):
    cb.record_failure("x")
    clock.advance(200)
    cb.record_failure("x")
    clock.advance(200)
    cb.record_failure("x")
    assert cb.is_open("x")


def test_failure_after_window_starts_new_count(cb: CircuitBreaker, clock: FakeClock):
    cb.record_failure("x")
    cb.record_failure("x")
    clock.advance(400)
    assert cb.record_failure("x") == 1
    assert not cb.is_open("x")


def test_reset_one_and_all(cb: CircuitBreaker):
    for engine in ("a", "b"):
        for _ in range(3):
            cb.record_failure(engine)
    cb.reset("a")
    assert not cb.is_open("a")
    assert cb.is_open("b")
    cb.reset()
    assert cb.snapshot() == {}


def test_snapshot_is_a_copy(cb: CircuitBreaker):
    cb.record_failure("x")
    snap = cb.snapshot()
    snap["x"].count = 99
    assert cb.failure_count("x") == 1


@pytest.mark.parametrize("kwargs", [{"threshold": 0}, {"window_seconds": 0}])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        CircuitBreaker(**kwargs)


def test_concurrent_failures_are_not_lost():
    cb = CircuitBreaker(threshold=3, window_seconds=3600)

    def hammer():
        for _ in range(200):
            cb.record_failure("x")

    threads = [threading.Thread(target=hammer) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert cb.failure_count("x") == 1600
