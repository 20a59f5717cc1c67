"""Unit tests for the retry primitive and backoff helpers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from claypilot.core.errors import AutomationError, ErrorKind, is_retryable_error
from claypilot.core.retry import (
    Backoff,
    RetryPolicy,
    exponential_backoff,
    jittered_backoff,
    linear_backoff,
    retry,
)


def transient(message="flaky") -> AutomationError:
    return AutomationError(message, ErrorKind.ELEMENT_NOT_CLICKABLE, retryable=True)


class TestBackoff:
    def test_linear(self):
        assert linear_backoff(1, 1.0) == 1.0
        assert linear_backoff(3, 0.5) == 1.5

    def test_exponential_doubles(self):
        for base in (0.1, 1.0, 2.5):
            assert exponential_backoff(2, base) == 2 * exponential_backoff(1, base)
            assert exponential_backoff(3, base) == 2 * exponential_backoff(2, base)

    def test_exponential_first_attempt_is_base(self):
        assert exponential_backoff(1, 0.75) == 0.75

    def test_jitter_bounded_by_half(self):
        for _ in range(50):
            delay = jittered_backoff(2, 1.0)
            assert 2.0 <= delay <= 3.0

    def test_policy_max_delay_caps(self):
        policy = RetryPolicy(backoff=Backoff.EXPONENTIAL, base_delay=1.0, max_delay=3.0)
        assert policy.delay_for(5) == 3.0


class TestRetry:
    # ------------------------------------------------------------------ success after failures

    async def test_fails_twice_then_succeeds(self):
        fn = AsyncMock(side_effect=[transient(), transient(), "ok"])
        with patch("claypilot.core.retry.sleep", new=AsyncMock()) as sleep:
            result = await retry(fn, RetryPolicy(max_attempts=3, backoff=Backoff.LINEAR, base_delay=1.0))
        assert result == "ok"
        assert fn.await_count == 3
        # Sleeps only between attempts, never after the successful call
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_no_sleep_on_first_success(self):
        fn = AsyncMock(return_value=42)
        with patch("claypilot.core.retry.sleep", new=AsyncMock()) as sleep:
            assert await retry(fn, RetryPolicy(max_attempts=3)) == 42
        sleep.assert_not_awaited()

    # ------------------------------------------------------------------ short-circuits

    async def test_non_retryable_invoked_once(self):
        fatal = AutomationError("gone", ErrorKind.AUTH_FAILED, retryable=False)
        fn = AsyncMock(side_effect=fatal)
        with patch("claypilot.core.retry.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(AutomationError) as exc_info:
                await retry(fn, RetryPolicy(max_attempts=5))
        assert exc_info.value is fatal
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    async def test_retry_if_veto_stops_immediately(self):
        fn = AsyncMock(side_effect=transient())
        policy = RetryPolicy(max_attempts=4, retry_if=lambda exc: False)
        with patch("claypilot.core.retry.sleep", new=AsyncMock()):
            with pytest.raises(AutomationError):
                await retry(fn, policy)
        assert fn.await_count == 1

    async def test_last_error_is_unwrapped(self):
        errors = [transient("first"), transient("second")]
        fn = AsyncMock(side_effect=errors)
        with patch("claypilot.core.retry.sleep", new=AsyncMock()):
            with pytest.raises(AutomationError) as exc_info:
                await retry(fn, RetryPolicy(max_attempts=2))
        assert exc_info.value is errors[1]

    # ------------------------------------------------------------------ observer and timeout

    async def test_on_retry_observer(self):
        observer = MagicMock()
        fn = AsyncMock(side_effect=[transient(), "done"])
        policy = RetryPolicy(max_attempts=2, backoff=Backoff.EXPONENTIAL, base_delay=0.5, on_retry=observer)
        with patch("claypilot.core.retry.sleep", new=AsyncMock()):
            await retry(fn, policy)
        attempt, error, delay = observer.call_args.args
        assert attempt == 1
        assert isinstance(error, AutomationError)
        assert delay == 0.5

    async def test_attempt_timeout_becomes_retryable_timeout(self):
        async def slow():
            await asyncio.sleep(1)

        with patch("claypilot.core.retry.sleep", new=AsyncMock()):
            with pytest.raises(AutomationError) as exc_info:
                await retry(slow, RetryPolicy(max_attempts=2, timeout=0.01))
        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert exc_info.value.retryable is True

    async def test_cancellation_is_never_retried(self):
        fn = AsyncMock(side_effect=asyncio.CancelledError())
        with patch("claypilot.core.retry.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(asyncio.CancelledError):
                await retry(fn, RetryPolicy(max_attempts=3, timeout=None))
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    async def test_invalid_attempt_count(self):
        with pytest.raises(ValueError):
            await retry(AsyncMock(), RetryPolicy(max_attempts=0))


class TestIsRetryableError:
    def test_typed_errors_use_flag(self):
        assert is_retryable_error(transient()) is True
        assert is_retryable_error(AutomationError("x", ErrorKind.AUTH_FAILED)) is False

    def test_untyped_errors_by_message(self):
        assert is_retryable_error(RuntimeError("net::ERR_CONNECTION_RESET")) is True
        assert is_retryable_error(RuntimeError("Timeout 3000ms exceeded")) is True
        assert is_retryable_error(ValueError("bad selector syntax")) is False

    def test_asyncio_timeout(self):
        assert is_retryable_error(asyncio.TimeoutError()) is True
