"""Generic retry with backoff and a per-attempt timeout race."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.wait import sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Backoff(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    JITTERED = "jittered"


def linear_backoff(attempt: int, base_delay: float = 1.0) -> float:
    return attempt * base_delay


def exponential_backoff(attempt: int, base_delay: float = 1.0) -> float:
    return (2 ** (attempt - 1)) * base_delay


def jittered_backoff(attempt: int, base_delay: float = 1.0) -> float:
    """Exponential backoff plus up to 50% uniform noise."""
    base = exponential_backoff(attempt, base_delay)
    return base + random.random() * base * 0.5


_BACKOFF_FUNCS: dict[Backoff, Callable[[int, float], float]] = {
    Backoff.LINEAR: linear_backoff,
    Backoff.EXPONENTIAL: exponential_backoff,
    Backoff.JITTERED: jittered_backoff,
}


@dataclass(frozen=True)
class RetryPolicy:
    """
    How a single call site retries.

    ``timeout`` bounds each attempt (seconds, ``None`` disables the race).
    ``retry_if`` may veto a retry; ``on_retry`` observes
    ``(attempt, error, delay)`` before each backoff sleep.
    """

    max_attempts: int = 3
    backoff: Backoff = Backoff.EXPONENTIAL
    base_delay: float = 1.0
    timeout: float | None = 30.0
    max_delay: float | None = None
    retry_if: Callable[[BaseException], bool] | None = None
    on_retry: Callable[[int, BaseException, float], None] | None = None

    def delay_for(self, attempt: int) -> float:
        delay = _BACKOFF_FUNCS[Backoff(self.backoff)](attempt, self.base_delay)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


def _should_retry(policy: RetryPolicy) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        if not isinstance(exc, Exception):
            return False
        if policy.retry_if is not None and not policy.retry_if(exc):
            return False
        return not (isinstance(exc, AutomationError) and not exc.retryable)

    return predicate


def _before_sleep(policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def observe(state: RetryCallState) -> None:
        exc = state.outcome.exception()
        delay = state.next_action.sleep
        if policy.on_retry is not None:
            policy.on_retry(state.attempt_number, exc, delay)
        logger.info(
            "Retry %d/%d in %.2fs after: %s", state.attempt_number, policy.max_attempts, delay, exc
        )

    return observe


async def _attempt(fn: Callable[[], Awaitable[T]], timeout: float | None) -> T:
    if timeout is None:
        return await fn()
    try:
        return await asyncio.wait_for(fn(), timeout)
    except asyncio.TimeoutError:
        raise AutomationError(
            f"Operation timed out after {timeout:g}s", ErrorKind.TIMEOUT, retryable=True
        ) from None


async def retry(fn: Callable[[], Awaitable[T]], policy: RetryPolicy | None = None) -> T:
    """
    Call ``fn`` until it succeeds or ``policy.max_attempts`` is used up.

    Errors flagged non-retryable, or rejected by ``policy.retry_if``, are
    re-raised immediately without consuming the remaining attempts. The
    error from the final attempt is re-raised unmodified.
    """
    policy = policy or RetryPolicy()
    if policy.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda state: policy.delay_for(state.attempt_number),
        retry=retry_if_exception(_should_retry(policy)),
        before_sleep=_before_sleep(policy),
        sleep=sleep,
        reraise=True,
    )
    return await retrying(_attempt, fn, policy.timeout)
