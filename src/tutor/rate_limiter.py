"""
Minimum-spacing limiter for outbound model calls.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

from loguru import logger


class RateLimiter:
    """
    Delays each call until ``min_delay_seconds`` have passed since the last one.

    Only call initiation is paced; the calls themselves may overlap once
    started. One instance is shared by every generation path of an engine.
    """

    def __init__(
        self,
        min_delay_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_delay_seconds = min_delay_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> float | None:
        return self._last_call

    async def throttle(self) -> None:
        """Wait out the remaining spacing, then record this call's time."""
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_delay_seconds:
                    wait_time = self.min_delay_seconds - elapsed
                    logger.debug(f"Throttling model call, waiting {wait_time * 1000:.0f}ms...")
                    await self._sleep(wait_time)
            self._last_call = self._clock()

    def reset(self) -> None:
        """Forget the last call so the next one goes out immediately."""
        self._last_call = None
