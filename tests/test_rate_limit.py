"""Tests for the sliding-window rate limiter."""

import asyncio
import threading

import pytest

from releasehook.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(window_seconds=1.0, max_requests=2, clock=clock)


class TestRateLimiter:
    def test_defaults(self):
        limiter = RateLimiter()
        assert limiter.window_seconds == 60.0
        assert limiter.max_requests == 100

    def test_window_admission_and_expiry(self, limiter, clock):
        assert limiter.is_allowed("1.2.3.4")
        clock.advance(0.2)
        assert limiter.is_allowed("1.2.3.4")
        clock.advance(0.2)
        assert not limiter.is_allowed("1.2.3.4")

        clock.advance(1.0)
        assert limiter.is_allowed("1.2.3.4")

    def test_rejection_is_not_recorded(self, limiter, clock):
        limiter.is_allowed("a")
        limiter.is_allowed("a")
        for _ in range(5):
            assert not limiter.is_allowed("a")
        assert limiter.get_stats()["total_requests"] == 2

    def test_identifiers_independent(self, limiter):
        limiter.is_allowed("a")
        limiter.is_allowed("a")
        assert not limiter.is_allowed("a")
        assert limiter.is_allowed("b")

    def test_sliding_window_frees_oldest_first(self, limiter, clock):
        limiter.is_allowed("a")
        clock.advance(0.6)
        limiter.is_allowed("a")
        clock.advance(0.5)
        # first request is now outside the window, second is not
        assert limiter.is_allowed("a")
        assert not limiter.is_allowed("a")

    def test_stats(self, limiter):
        limiter.is_allowed("a")
        limiter.is_allowed("a")
        limiter.is_allowed("b")
        assert limiter.get_stats() == {"tracked_identifiers": 2, "total_requests": 3}

    def test_sweep_removes_expired_identifiers(self, limiter, clock):
        limiter.is_allowed("old")
        clock.advance(0.8)
        limiter.is_allowed("fresh")
        clock.advance(0.5)

        assert limiter.sweep() == 1
        assert limiter.get_stats() == {"tracked_identifiers": 1, "total_requests": 1}

    def test_concurrent_checks_respect_limit(self):
        limiter = RateLimiter(window_seconds=60.0, max_requests=10)
        results: list[bool] = []
        lock = threading.Lock()

        def worker():
            allowed = limiter.is_allowed("shared")
            with lock:
                results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 10


class TestSweepTask:
    async def test_start_and_stop(self):
        limiter = RateLimiter(window_seconds=0.05, max_requests=1)
        limiter.is_allowed("a")
        await limiter.start()
        await asyncio.sleep(0.2)
        assert limiter.get_stats()["tracked_identifiers"] == 0
        await limiter.stop()

    async def test_stop_without_start(self):
        limiter = RateLimiter()
        await limiter.stop()
