"""Driver facade over an injected tool-call handler."""

from claypilot.driver.facade import DriverFacade, ToolCallHandler
from claypilot.driver.playwright_handler import PlaywrightToolHandler
from claypilot.driver.results import (
    AckResult,
    AttributeResult,
    DriverResult,
    NavigateResult,
    ScreenshotResult,
    TextResult,
    VisibilityResult,
    parse_result,
)

__all__ = [
    "AckResult",
    "AttributeResult",
    "DriverFacade",
    "DriverResult",
    "NavigateResult",
    "PlaywrightToolHandler",
    "ScreenshotResult",
    "TextResult",
    "ToolCallHandler",
    "VisibilityResult",
    "parse_result",
]
