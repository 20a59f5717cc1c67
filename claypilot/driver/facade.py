"""Driver facade: the only path from workflows to the injected tool-call handler."""

from __future__ import annotations

import asyncio
import datetime
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from claypilot.config import ClayConfig
from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.events import EventLog
from claypilot.core.wait import sleep
from claypilot.driver.results import (
    AttributeResult,
    DriverResult,
    NavigateResult,
    ScreenshotResult,
    TextResult,
    VisibilityResult,
    parse_result,
)

logger = logging.getLogger(__name__)

ToolCallHandler = Callable[[str, dict], Awaitable[Any]]
R = TypeVar("R", bound=BaseModel)

# Failure disposition per operation: (kind, retryable)
_FAILURES: dict[str, tuple[ErrorKind, bool]] = {
    "navigate": (ErrorKind.NAVIGATION_FAILED, True),
    "click": (ErrorKind.ELEMENT_NOT_CLICKABLE, True),
    "fill": (ErrorKind.ELEMENT_NOT_FOUND, True),
    "wait_for_selector": (ErrorKind.ELEMENT_NOT_FOUND, False),
    "screenshot": (ErrorKind.UNKNOWN, False),
    "get_text": (ErrorKind.ELEMENT_NOT_FOUND, False),
    "get_attribute": (ErrorKind.ELEMENT_NOT_FOUND, False),
    "is_visible": (ErrorKind.ELEMENT_NOT_FOUND, False),
    "select_option": (ErrorKind.ELEMENT_NOT_FOUND, True),
    "upload_file": (ErrorKind.UPLOAD_FAILED, True),
    "press": (ErrorKind.UNKNOWN, True),
    "scroll_into_view": (ErrorKind.ELEMENT_NOT_FOUND, True),
    "wait_for_navigation": (ErrorKind.TIMEOUT, True),
    "close": (ErrorKind.UNKNOWN, False),
}


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


class DriverFacade:
    """
    Forwards UI operations to a tool-call handler bound with :meth:`connect`.

    Every interactive operation is raced against a per-call timeout, settles
    for a short delay after success, and turns any failure into an
    :class:`AutomationError` whose kind depends only on the operation. With
    ``dry_run`` set, nothing is forwarded: each call sleeps for the configured
    simulated delay and succeeds.
    """

    def __init__(
        self,
        config: ClayConfig | None = None,
        events: EventLog | None = None,
        *,
        dry_run: bool | None = None,
        tool_prefix: str | None = None,
    ) -> None:
        self._config = config or ClayConfig()
        self._events = events or EventLog()
        self._dry_run = self._config.options.dry_run if dry_run is None else dry_run
        self._prefix = self._config.options.tool_prefix if tool_prefix is None else tool_prefix
        self._handler: ToolCallHandler | None = None
        self._connected = False
        self._current_url = ""

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self, handler: ToolCallHandler) -> None:
        self._handler = handler
        self._connected = True

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def config(self) -> ClayConfig:
        return self._config

    @property
    def current_url(self) -> str:
        return self._current_url

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, operation: str, args: dict[str, Any]) -> Any:
        if self._dry_run:
            logger.debug("[DRY RUN] %s %s", operation, args)
            await sleep(self._config.delays.dry_run)
            return self._simulate(operation, args)

        if self._handler is None:
            raise AutomationError(
                "Tool-call handler not set. Call connect() first.",
                ErrorKind.NETWORK_ERROR,
                retryable=False,
            )
        return await self._handler(f"{self._prefix}{operation}", args)

    def _simulate(self, operation: str, args: dict[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {"success": True, "dry_run": True}
        if operation == "navigate":
            result["url"] = args.get("url")
        elif operation == "is_visible":
            result["visible"] = False
        elif operation == "get_text":
            result["text"] = ""
        elif operation == "get_attribute":
            result["value"] = ""
        return result

    async def _perform(
        self,
        operation: str,
        args: dict[str, Any],
        *,
        timeout: float | None,
        message: str,
        selector: str | None = None,
    ) -> DriverResult:
        """Run one operation; every failure becomes the operation's AutomationError."""
        kind, retryable = _FAILURES[operation]
        try:
            call = self._call(operation, args)
            raw = await (asyncio.wait_for(call, timeout) if timeout else call)
            result = parse_result(operation, raw)
        except AutomationError as exc:
            if exc.kind is ErrorKind.NETWORK_ERROR and not exc.retryable:
                raise
            raise AutomationError(
                f"{message}: {exc}", kind, retryable, selector=selector
            ) from exc
        except asyncio.TimeoutError as exc:
            raise AutomationError(
                f"{message}: timed out after {timeout:g}s", kind, retryable, selector=selector
            ) from exc
        except (ValidationError, ValueError) as exc:
            raise AutomationError(
                f"{message}: malformed {operation} result", kind, retryable, selector=selector
            ) from exc
        except Exception as exc:
            raise AutomationError(
                f"{message}: {exc}", kind, retryable, selector=selector
            ) from exc

        if not result.success:
            raise AutomationError(f"{message}: backend reported failure", kind, retryable, selector=selector)

        if isinstance(result, NavigateResult) and result.url:
            self._current_url = result.url
        return result

    async def _read(
        self,
        operation: str,
        args: dict[str, Any],
        expected: type[R],
        *,
        timeout: float | None,
        message: str,
        selector: str | None = None,
    ) -> R:
        result = await self._perform(operation, args, timeout=timeout, message=message, selector=selector)
        if not isinstance(result, expected):
            kind, retryable = _FAILURES[operation]
            raise AutomationError(
                f"{message}: malformed {operation} result", kind, retryable, selector=selector
            )
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def navigate(self, url: str, *, wait_until: str = "networkidle", timeout: float | None = None) -> None:
        self._events.info(f"Navigating to: {url}")
        result = await self._perform(
            "navigate",
            {"url": url, "waitUntil": wait_until},
            timeout=timeout or self._config.timeouts.navigation,
            message=f"Failed to navigate to {url}",
        )
        # Keep the backend-reported location when it followed a redirect
        if not (isinstance(result, NavigateResult) and result.url):
            self._current_url = url
        await sleep(self._config.delays.between_actions)

    async def click(self, selector: str, *, timeout: float | None = None) -> None:
        timeout = timeout or self._config.timeouts.element_wait
        self._events.info(f"Clicking: {selector}")
        await self._perform(
            "click",
            {"selector": selector, "timeout": _ms(timeout)},
            timeout=timeout,
            message=f"Failed to click element: {selector}",
            selector=selector,
        )
        await sleep(self._config.delays.after_click)

    async def type(self, selector: str, text: str, *, timeout: float | None = None) -> None:
        """Replace the field's content with ``text``."""
        timeout = timeout or self._config.timeouts.element_wait
        self._events.info(f"Typing into: {selector}")
        await self._perform(
            "fill",
            {"selector": selector, "value": text},
            timeout=timeout,
            message=f"Failed to type into element: {selector}",
            selector=selector,
        )
        await sleep(self._config.delays.after_type)

    fill = type

    async def wait_for_selector(
        self,
        selector: str,
        *,
        timeout: float | None = None,
        state: str = "visible",
    ) -> None:
        if state not in ("visible", "attached", "hidden"):
            raise ValueError(f"Unsupported wait state: {state!r}")
        timeout = timeout or self._config.timeouts.element_wait
        self._events.info(f"Waiting for: {selector}")
        await self._perform(
            "wait_for_selector",
            {"selector": selector, "timeout": _ms(timeout), "state": state},
            timeout=timeout,
            message=f"Element not found: {selector}",
            selector=selector,
        )

    async def screenshot(self, name: str, *, full_page: bool = True) -> str:
        """Capture the page; returns the file path, or ``""`` when screenshots are disabled."""
        if not self._config.options.enable_screenshots:
            self._events.info(f"[Screenshot disabled] {name}")
            return ""

        timestamp = datetime.datetime.now().isoformat().replace(":", "-").replace(".", "-")
        filename = f"{name}-{timestamp}.png"
        self._events.info(f"Taking screenshot: {filename}")
        result = await self._read(
            "screenshot",
            {"name": filename, "fullPage": full_page},
            ScreenshotResult,
            timeout=self._config.timeouts.element_wait,
            message=f"Failed to take screenshot {filename}",
        )
        return result.path or str(Path(self._config.options.screenshot_dir) / filename)

    async def get_text(self, selector: str, *, timeout: float | None = None) -> str:
        self._events.info(f"Getting text from: {selector}")
        result = await self._read(
            "get_text",
            {"selector": selector},
            TextResult,
            timeout=timeout or self._config.timeouts.element_wait,
            message=f"Failed to read text from: {selector}",
            selector=selector,
        )
        return result.text or ""

    async def get_attribute(self, selector: str, attribute: str, *, timeout: float | None = None) -> str:
        self._events.info(f"Getting attribute {attribute} from: {selector}")
        result = await self._read(
            "get_attribute",
            {"selector": selector, "attribute": attribute},
            AttributeResult,
            timeout=timeout or self._config.timeouts.element_wait,
            message=f"Failed to read {attribute} from: {selector}",
            selector=selector,
        )
        return result.value or ""

    async def is_visible(self, selector: str, *, timeout: float | None = None) -> bool:
        """Never raises: any failure is reported as not visible."""
        try:
            result = await self._perform(
                "is_visible",
                {"selector": selector},
                timeout=timeout or self._config.timeouts.short_wait,
                message=f"Visibility check failed: {selector}",
                selector=selector,
            )
        except Exception:
            return False
        return isinstance(result, VisibilityResult) and result.visible

    async def select_option(self, selector: str, value: str, *, timeout: float | None = None) -> None:
        self._events.info(f"Selecting option {value} in: {selector}")
        await self._perform(
            "select_option",
            {"selector": selector, "value": value},
            timeout=timeout or self._config.timeouts.element_wait,
            message=f"Failed to select {value} in: {selector}",
            selector=selector,
        )
        await sleep(self._config.delays.after_click)

    async def upload_file(self, selector: str, path: str, *, timeout: float | None = None) -> None:
        self._events.info(f"Uploading file to: {selector}")
        await self._perform(
            "upload_file",
            {"selector": selector, "path": str(path)},
            timeout=timeout or self._config.timeouts.csv_upload,
            message=f"Failed to upload {path}",
            selector=selector,
        )
        await sleep(self._config.delays.between_actions)

    async def press_key(self, key: str, *, timeout: float | None = None) -> None:
        self._events.info(f"Pressing key: {key}")
        await self._perform(
            "press",
            {"key": key},
            timeout=timeout or self._config.timeouts.element_wait,
            message=f"Failed to press {key}",
        )
        await sleep(self._config.delays.after_click)

    async def scroll_into_view(self, selector: str, *, timeout: float | None = None) -> None:
        self._events.info(f"Scrolling to: {selector}")
        await self._perform(
            "scroll_into_view",
            {"selector": selector},
            timeout=timeout or self._config.timeouts.element_wait,
            message=f"Failed to scroll to: {selector}",
            selector=selector,
        )
        await sleep(self._config.delays.after_click)

    async def wait_for_navigation(self, *, timeout: float | None = None) -> None:
        timeout = timeout or self._config.timeouts.navigation
        self._events.info("Waiting for navigation")
        await self._perform(
            "wait_for_navigation",
            {"timeout": _ms(timeout)},
            timeout=timeout,
            message="Navigation did not complete",
        )

    async def close(self) -> None:
        """Release the backend. Errors are logged and swallowed."""
        if not self._connected:
            return
        try:
            await self._perform(
                "close",
                {},
                timeout=self._config.timeouts.short_wait,
                message="Failed to close browser",
            )
        except AutomationError as exc:
            self._events.error(f"Error closing browser: {exc}")
        self._connected = False
