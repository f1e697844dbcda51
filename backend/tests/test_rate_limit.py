"""Tests for the per-user rate limiter."""

from __future__ import annotations

import threading

from thought_weaver.insights.rate_limit import RateLimiter


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_second_request_inside_interval_is_rejected() -> None:
    clock = ManualClock()
    limiter = RateLimiter(min_interval_ms=60_000, clock=clock)

    assert limiter.check("u1").allowed
    clock.now = 59.9
    decision = limiter.check("u1")
    assert not decision.allowed
    assert 0 < decision.retry_after_ms <= 100


def test_rejection_does_not_move_the_window() -> None:
    clock = ManualClock()
    limiter = RateLimiter(min_interval_ms=60_000, clock=clock)

    limiter.check("u1")
    clock.now = 45
    assert not limiter.check("u1").allowed
    clock.now = 60
    assert limiter.check("u1").allowed


def test_users_are_limited_independently() -> None:
    limiter = RateLimiter(min_interval_ms=60_000, clock=ManualClock())

    assert limiter.check("u1").allowed
    assert limiter.check("u2").allowed
    assert not limiter.check("u1").allowed


def test_least_recent_users_are_evicted() -> None:
    clock = ManualClock()
    limiter = RateLimiter(min_interval_ms=60_000, max_users=2, clock=clock)

    limiter.check("u1")
    limiter.check("u2")
    limiter.check("u3")

    assert len(limiter) == 2
    # u1 was forgotten, so it is allowed again straight away.
    assert limiter.check("u1").allowed
    assert not limiter.check("u3").allowed


def test_concurrent_requests_allow_exactly_one() -> None:
    limiter = RateLimiter(min_interval_ms=60_000)
    barrier = threading.Barrier(16)
    results: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        allowed = limiter.check("same-user").allowed
        with lock:
            results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1


def test_reset() -> None:
    limiter = RateLimiter(min_interval_ms=60_000, clock=ManualClock())
    limiter.check("u1")
    limiter.reset("u1")
    assert limiter.check("u1").allowed
    limiter.reset()
    assert len(limiter) == 0
