"""Polling and sleep helpers shared by the driver, retry and workflows."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar, Union

T = TypeVar("T")

MaybeAwaitable = Union[T, Awaitable[T]]


async def sleep(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)


async def _resolve(value):
    if asyncio.iscoroutine(value) or isinstance(value, asyncio.Future):
        return await value
    return value


async def wait_until(
    condition: Callable[[], MaybeAwaitable[bool]],
    *,
    timeout: float = 30.0,
    interval: float = 0.5,
    message: str = "Condition not met",
) -> None:
    """Poll ``condition`` until it is truthy; raise ``TimeoutError`` otherwise."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if await _resolve(condition()):
            return
        await sleep(interval)
    raise TimeoutError(f"Timeout: {message}")


async def wait_for_value(
    get_value: Callable[[], MaybeAwaitable[T]],
    predicate: Callable[[T], bool],
    *,
    timeout: float = 30.0,
    interval: float = 0.5,
    message: str = "Value condition not met",
) -> T:
    """Poll ``get_value`` until ``predicate`` accepts the value, and return it."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        value = await _resolve(get_value())
        if predicate(value):
            return value
        await sleep(interval)
    raise TimeoutError(f"Timeout: {message}")
