"""Typed automation errors and best-effort error screenshots."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claypilot.driver.facade import DriverFacade

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    AUTH_FAILED = "AUTH_FAILED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    ELEMENT_NOT_CLICKABLE = "ELEMENT_NOT_CLICKABLE"
    TIMEOUT = "TIMEOUT"
    NAVIGATION_FAILED = "NAVIGATION_FAILED"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    ENRICHMENT_FAILED = "ENRICHMENT_FAILED"
    EXPORT_FAILED = "EXPORT_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class AutomationError(Exception):
    """
    A failure while driving the target UI.

    ``kind`` and ``retryable`` are fixed where the error is raised; the
    retry primitive never re-classifies them. All attributes are read-only.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        retryable: bool = False,
        screenshot_path: str | None = None,
        selector: str | None = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._kind = ErrorKind(kind)
        self._retryable = retryable
        self._screenshot_path = screenshot_path
        self._selector = selector

    @property
    def message(self) -> str:
        return self._message

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def screenshot_path(self) -> str | None:
        return self._screenshot_path

    @property
    def selector(self) -> str | None:
        return self._selector

    def __repr__(self) -> str:
        return (
            f"AutomationError({self._message!r}, kind={self._kind.value}, "
            f"retryable={self._retryable}, selector={self._selector!r})"
        )


# Substrings of untyped exception messages that usually mean a transient failure
_RETRYABLE_PATTERNS = (
    "timeout",
    "net::",
    "network",
    "econnrefused",
    "econnreset",
    "etimedout",
    "detached",
    "navigation",
)


def is_retryable_error(exc: BaseException) -> bool:
    """Classify an arbitrary exception as transient or fatal."""
    if isinstance(exc, AutomationError):
        return exc.retryable
    if isinstance(exc, asyncio.TimeoutError):
        return True
    message = str(exc).lower()
    return any(pattern in message for pattern in _RETRYABLE_PATTERNS)


async def capture_error_screenshot(driver: "DriverFacade", kind: ErrorKind | str) -> str | None:
    """
    Take a full-page screenshot named after the error kind.

    Never raises: a failed capture is logged and ``None`` is returned.
    """
    code = kind.value if isinstance(kind, ErrorKind) else str(kind)
    try:
        path = await driver.screenshot(f"error-{code}")
    except Exception as exc:
        logger.error("Failed to capture error screenshot: %s", exc)
        return None
    if path:
        logger.info("Error screenshot saved: %s", path)
    return path or None
