"""
Unit tests for the retry wrapper.
"""

import httpx
import pytest
from httpx import Request, Response

from src.tutor.errors import EmptyCompletion, MalformedContent, TransientCallFailure
from src.tutor.retry import backoff_delay, is_transient, with_retry


def status_error(status_code):
    request = Request("POST", "https://api.example.com/v1/chat/completions")
    response = Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class Recorder:
    def __init__(self):
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)


def flaky(*outcomes):
    """Operation raising or returning the given outcomes in order."""
    remaining = list(outcomes)
    calls = []

    async def operation():
        calls.append(1)
        outcome = remaining.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    operation.calls = calls
    return operation


class TestIsTransient:
    @pytest.mark.parametrize("status_code", [429, 500, 502, 503])
    def test_retryable_status_codes(self, status_code):
        assert is_transient(status_error(status_code))

    @pytest.mark.parametrize("status_code", [400, 401, 404, 422])
    def test_client_errors_are_not_transient(self, status_code):
        assert not is_transient(status_error(status_code))

    def test_network_failures_are_transient(self):
        request = Request("POST", "https://api.example.com")
        assert is_transient(httpx.ReadTimeout("timed out", request=request))
        assert is_transient(httpx.ConnectError("refused", request=request))
        assert is_transient(TimeoutError())
        assert is_transient(ConnectionError())

    def test_empty_completion_is_transient(self):
        assert is_transient(EmptyCompletion())

    def test_malformed_content_is_not_transient(self):
        assert not is_transient(MalformedContent("bad json"))


class TestBackoffDelay:
    def test_exponential_without_jitter(self):
        assert backoff_delay(1, 1.0, 0) == 2.0
        assert backoff_delay(2, 1.0, 0) == 4.0

    def test_jitter_stays_within_bounds(self):
        for _ in range(50):
            assert 1.5 <= backoff_delay(1, 1.0, 0.25) <= 2.5


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        recorder = Recorder()
        operation = flaky("ok")

        result = await with_retry(operation, sleep=recorder.sleep)

        assert result == "ok"
        assert recorder.sleeps == []

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self):
        recorder = Recorder()
        operation = flaky(status_error(503), "ok")

        result = await with_retry(operation, attempts=2, base_delay=1.0, jitter=0, sleep=recorder.sleep)

        assert result == "ok"
        assert len(operation.calls) == 2
        assert recorder.sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_backoff_doubles(self):
        recorder = Recorder()
        operation = flaky(TimeoutError(), TimeoutError(), "ok")

        await with_retry(operation, attempts=3, base_delay=1.0, jitter=0, sleep=recorder.sleep)

        assert recorder.sleeps == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_transient_failure(self):
        recorder = Recorder()
        last = status_error(500)
        operation = flaky(status_error(502), last)

        with pytest.raises(TransientCallFailure) as exc_info:
            await with_retry(operation, attempts=2, jitter=0, sleep=recorder.sleep)

        assert exc_info.value.__cause__ is last
        assert len(operation.calls) == 2

    @pytest.mark.asyncio
    async def test_non_transient_error_is_not_retried(self):
        recorder = Recorder()
        operation = flaky(status_error(400), "never reached")

        with pytest.raises(httpx.HTTPStatusError):
            await with_retry(operation, attempts=2, sleep=recorder.sleep)

        assert len(operation.calls) == 1
        assert recorder.sleeps == []
