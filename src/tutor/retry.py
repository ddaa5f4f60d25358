"""
Retry with exponential backoff for the model call.

Only transient failures are retried. Anything else propagates on the first
attempt so the planner can route it to a fallback.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

import httpx
from loguru import logger

from src.tutor.errors import TransientCallFailure

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429})


def is_transient(exc: BaseException) -> bool:
    """True for network, timeout, rate-limit and 5xx failures."""
    if isinstance(exc, TransientCallFailure):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status in RETRYABLE_STATUS_CODES or status >= 500
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    return isinstance(exc, (TimeoutError, ConnectionError))


def backoff_delay(retry_number: int, base_delay: float, jitter: float) -> float:
    """Delay before retry ``retry_number`` (1-based): base * 2**n, +/- jitter."""
    delay = base_delay * (2**retry_number)
    if jitter:
        delay *= 1 + random.uniform(-jitter, jitter)
    return max(delay, 0.0)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 2,
    base_delay: float = 1.0,
    jitter: float = 0.25,
    operation_name: str = "model call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` up to ``attempts`` times.

    With the default base delay, the waits are 2s then 4s.

    Raises:
        TransientCallFailure: When every attempt failed transiently
        Exception: Any non-transient failure, unchanged, on first occurrence
    """
    attempts = max(1, attempts)
    last_error: BaseException | None = None

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_transient(e):
                raise
            last_error = e

            if attempt < attempts - 1:
                wait_time = backoff_delay(attempt + 1, base_delay, jitter)
                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{attempts}: {e}. "
                    f"Retrying in {wait_time:.1f}s..."
                )
                await sleep(wait_time)

    logger.error(f"{operation_name} failed after {attempts} attempts: {last_error}")
    raise TransientCallFailure(
        f"{operation_name} failed after {attempts} attempts: {last_error}"
    ) from last_error
