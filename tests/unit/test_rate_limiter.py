"""
Unit tests for the model-call rate limiter.
"""

import asyncio

import pytest

from src.tutor.rate_limiter import RateLimiter


class SimulatedTime:
    """Clock plus sleep that advances the clock instead of waiting."""

    def __init__(self, now=100.0):
        self.now = now
        self.sleeps = []

    def clock(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def sim():
    return SimulatedTime()


@pytest.fixture
def limiter(sim):
    return RateLimiter(min_delay_seconds=1.0, clock=sim.clock, sleep=sim.sleep)


class TestThrottle:
    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, limiter, sim):
        await limiter.throttle()

        assert sim.sleeps == []
        assert limiter.last_call == 100.0

    @pytest.mark.asyncio
    async def test_second_call_waits_remaining_delay(self, limiter, sim):
        await limiter.throttle()
        sim.now += 0.25

        await limiter.throttle()

        assert sim.sleeps == [pytest.approx(0.75)]
        assert limiter.last_call == pytest.approx(101.0)

    @pytest.mark.asyncio
    async def test_no_wait_after_delay_elapsed(self, limiter, sim):
        await limiter.throttle()
        sim.now += 5

        await limiter.throttle()

        assert sim.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_spaced(self, limiter, sim):
        await asyncio.gather(limiter.throttle(), limiter.throttle(), limiter.throttle())

        assert sim.sleeps == [pytest.approx(1.0), pytest.approx(1.0)]
        assert limiter.last_call == pytest.approx(102.0)

    @pytest.mark.asyncio
    async def test_reset_allows_immediate_call(self, limiter, sim):
        await limiter.throttle()
        limiter.reset()

        await limiter.throttle()

        assert sim.sleeps == []
