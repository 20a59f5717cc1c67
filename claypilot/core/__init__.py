"""Core primitives: errors, retry, waiting and the event log."""

from claypilot.core.errors import (
    AutomationError,
    ErrorKind,
    capture_error_screenshot,
    is_retryable_error,
)
from claypilot.core.events import Event, EventLog, LogEntry, LogLevel
from claypilot.core.retry import (
    Backoff,
    RetryPolicy,
    exponential_backoff,
    jittered_backoff,
    linear_backoff,
    retry,
)

__all__ = [
    "AutomationError",
    "Backoff",
    "ErrorKind",
    "Event",
    "EventLog",
    "LogEntry",
    "LogLevel",
    "RetryPolicy",
    "capture_error_screenshot",
    "exponential_backoff",
    "is_retryable_error",
    "jittered_backoff",
    "linear_backoff",
    "retry",
]
