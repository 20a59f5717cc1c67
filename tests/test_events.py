"""Unit tests for EventLog formatting, history and listener fan-out."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

from claypilot.core.events import EventLog, LogLevel, format_duration, progress_bar
from claypilot.core.logger import setup_logger


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestFormatting:
    def test_format_duration(self):
        assert format_duration(5) == "5s"
        assert format_duration(125) == "2m 5s"
        assert format_duration(3725) == "1h 2m 5s"

    def test_progress_bar(self):
        assert progress_bar(0) == "[" + " " * 20 + "]"
        assert progress_bar(50) == "[" + "=" * 10 + " " * 10 + "]"
        assert progress_bar(150) == "[" + "=" * 20 + "]"

    def test_line_has_elapsed_and_marker(self):
        clock = FakeClock()
        log = EventLog(clock=clock)
        clock.now += 65
        assert log.format_line(LogLevel.WARNING, "careful") == "[1m 5s] [!] careful"
        assert log.format_line(LogLevel.SUCCESS, "done").endswith("[+] done")
        assert log.format_line(LogLevel.ERROR, "boom").endswith("[X] boom")


class TestHistory:
    def setup_method(self):
        self.log = EventLog()

    def test_entries_accumulate(self):
        self.log.info("one")
        self.log.status("two")
        self.log.error("three")
        assert [e.message for e in self.log.entries()] == ["one", "two", "three"]
        assert self.log.entries()[2].level is LogLevel.ERROR

    def test_recent(self):
        for i in range(10):
            self.log.info(str(i))
        assert [e.message for e in self.log.recent(3)] == ["7", "8", "9"]
        assert self.log.recent(0) == []

    def test_clear(self):
        self.log.info("x")
        self.log.clear()
        assert self.log.entries() == []

    def test_emit_level_types_become_entries(self):
        self.log.emit("warning", "watch out")
        assert self.log.entries()[-1].level is LogLevel.WARNING

    def test_summary_lists_stats(self):
        text = self.log.summary({"rows": 12, "status": "ok"})
        assert "SUMMARY" in text
        assert "rows: 12" in text
        assert "status: ok" in text

    def test_forwards_to_stdlib_logger(self):
        logger = MagicMock(spec=logging.Logger)
        log = EventLog(logger=logger)
        log.warning("disk full")
        level, line = logger.log.call_args.args
        assert level == logging.WARNING
        assert line.endswith("[!] disk full")


class TestListeners:
    def setup_method(self):
        self.log = EventLog()

    def test_listener_receives_log_and_custom_events(self):
        seen = []
        self.log.subscribe(seen.append)
        self.log.info("hello")
        self.log.emit("workflow-start", {"workflow": "login"})
        assert [e.type for e in seen] == ["log", "workflow-start"]
        assert seen[0].data.message == "hello"
        assert seen[1].data == {"workflow": "login"}

    def test_progress_event(self):
        seen = []
        self.log.subscribe(seen.append)
        self.log.progress(40, "Enrichment progress")
        progress = [e for e in seen if e.type == "progress"]
        assert progress[0].data == {"percent": 40, "message": "Enrichment progress"}
        assert "[========" in self.log.entries()[-1].message

    def test_throwing_listener_is_isolated(self):
        bad = MagicMock(side_effect=RuntimeError("listener bug"))
        good = MagicMock()
        self.log.subscribe(bad)
        self.log.subscribe(good)
        entry = self.log.info("still delivered")
        assert entry.message == "still delivered"
        bad.assert_called_once()
        good.assert_called_once()

    def test_unsubscribe(self):
        listener = MagicMock()
        unsubscribe = self.log.subscribe(listener)
        unsubscribe()
        unsubscribe()
        self.log.info("nobody listening")
        listener.assert_not_called()


class TestSetupLogger:
    def test_idempotent(self):
        first = setup_logger("claypilot.test-idempotent", "DEBUG")
        second = setup_logger("claypilot.test-idempotent", "ERROR")
        assert first is second
        assert len(first.handlers) == 1
        assert first.level == logging.DEBUG

    def test_file_handler(self, tmp_path):
        logger = setup_logger("claypilot.test-file", log_file=tmp_path / "logs" / "run.log")
        assert len(logger.handlers) == 2
        assert (tmp_path / "logs").is_dir()
