"""Append-only workflow log with a synchronous listener bus."""

from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class LogLevel(str, Enum):
    INFO = "info"
    STATUS = "status"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_MARKERS: dict[LogLevel, str] = {
    LogLevel.INFO: "i",
    LogLevel.STATUS: ">",
    LogLevel.SUCCESS: "+",
    LogLevel.WARNING: "!",
    LogLevel.ERROR: "X",
}

_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.INFO: logging.INFO,
    LogLevel.STATUS: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

_PROGRESS_BAR_WIDTH = 20


@dataclass
class LogEntry:
    timestamp: datetime.datetime
    level: LogLevel
    message: str
    data: Any = None


@dataclass
class Event:
    """Broadcast to listeners: ``log``, ``progress``, ``workflow-start``, ..."""

    type: str
    data: Any
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)


EventCallback = Callable[[Event], None]


def format_duration(seconds: float) -> str:
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def progress_bar(percent: float, width: int = _PROGRESS_BAR_WIDTH) -> str:
    percent = max(0.0, min(100.0, float(percent)))
    filled = round(percent / 100 * width)
    return f"[{'=' * filled}{' ' * (width - filled)}]"


class EventLog:
    """
    Collects log entries for the lifetime of the process and fans them out.

    Every entry is rendered as ``[elapsed] [marker] message`` and forwarded
    to a stdlib logger; listeners receive an :class:`Event` synchronously.
    A listener that raises is logged and skipped, so delivery to the other
    listeners and the emitting call are never affected.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._logger = logger or logging.getLogger("claypilot.events")
        self._clock = clock
        self._start = clock()
        self._entries: list[LogEntry] = []
        self._listeners: list[EventCallback] = []

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def elapsed(self) -> str:
        return format_duration(self._clock() - self._start)

    def format_line(self, level: LogLevel, message: str) -> str:
        return f"[{self.elapsed()}] [{_MARKERS[LogLevel(level)]}] {message}"

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(self, level: LogLevel, message: str, data: Any = None) -> LogEntry:
        level = LogLevel(level)
        entry = LogEntry(
            timestamp=datetime.datetime.now(),
            level=level,
            message=message,
            data=data,
        )
        self._entries.append(entry)
        self._logger.log(_STDLIB_LEVELS[level], self.format_line(level, message))
        self._broadcast("log", entry)
        return entry

    def info(self, message: str, data: Any = None) -> LogEntry:
        return self.log(LogLevel.INFO, message, data)

    def status(self, message: str, data: Any = None) -> LogEntry:
        return self.log(LogLevel.STATUS, message, data)

    def success(self, message: str, data: Any = None) -> LogEntry:
        return self.log(LogLevel.SUCCESS, message, data)

    def warning(self, message: str, data: Any = None) -> LogEntry:
        return self.log(LogLevel.WARNING, message, data)

    def error(self, message: str, data: Any = None) -> LogEntry:
        return self.log(LogLevel.ERROR, message, data)

    def emit(self, event_type: str, data: Any = None) -> None:
        """Log level-like event types; broadcast everything else as-is."""
        if event_type in ("status", "info"):
            self.status(str(data))
        elif event_type == "success":
            self.success(str(data))
        elif event_type == "error":
            self.error(str(data))
        elif event_type == "warning":
            self.warning(str(data))
        else:
            self._broadcast(event_type, data)

    def progress(self, percent: float, message: str | None = None) -> None:
        bar = progress_bar(percent)
        text = f"{bar} {percent:g}% - {message}" if message else f"{bar} {percent:g}%"
        self.status(text)
        self._broadcast("progress", {"percent": percent, "message": message})

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _broadcast(self, event_type: str, data: Any) -> None:
        event = Event(type=event_type, data=data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._logger.exception("Error in event listener %r", listener)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def recent(self, count: int = 50) -> list[LogEntry]:
        if count <= 0:
            return []
        return self._entries[-count:]

    def clear(self) -> None:
        self._entries = []
        self._start = self._clock()

    def summary(self, stats: dict[str, Any]) -> str:
        rule = "=" * 60
        lines = [rule, "SUMMARY", rule, f"Duration: {self.elapsed()}"]
        lines.extend(f"{key}: {value}" for key, value in stats.items())
        lines.append(rule)
        text = "\n".join(lines)
        self._logger.info("\n%s", text)
        return text
