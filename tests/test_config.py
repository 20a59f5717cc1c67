"""Unit tests for ClayConfig defaults and environment loading."""

from __future__ import annotations

import datetime
from pathlib import Path

from claypilot.config import ClayConfig, UrlSettings
from claypilot.core.errors import is_retryable_error
from claypilot.core.retry import Backoff

_ENV_VARS = (
    "CLAY_PROFILE_PATH",
    "CLAY_EMAIL",
    "CLAY_BASE_URL",
    "ENABLE_SCREENSHOTS",
    "SCREENSHOT_DIR",
    "HEADLESS",
    "DRY_RUN",
    "CLAY_TOOL_PREFIX",
    "CLAY_LOG_LEVEL",
    "WEBAPP_HOST",
    "WEBAPP_PORT",
)


def clear_env(monkeypatch):
    # setenv first so monkeypatch also undoes anything load_dotenv writes
    for name in _ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestDefaults:
    def test_timeouts_in_seconds(self):
        config = ClayConfig()
        assert config.timeouts.element_wait == 15.0
        assert config.timeouts.enrichment_run == 300.0
        assert config.delays.poll_interval == 5.0

    def test_session_max_age_is_seven_days(self):
        assert ClayConfig().session.max_age == datetime.timedelta(days=7)

    def test_table_url(self):
        urls = UrlSettings(tables="https://app.clay.com/workspaces/")
        assert urls.table("t_1") == "https://app.clay.com/workspaces/t_1"

    def test_retry_policies(self):
        retries = ClayConfig().retries
        click = retries.policy("click", timeout=4.0)
        assert (click.max_attempts, click.backoff, click.timeout) == (3, Backoff.EXPONENTIAL, 4.0)
        assert click.retry_if is is_retryable_error
        assert retries.policy("type").backoff is Backoff.LINEAR
        assert retries.policy("navigation").max_attempts == 2


class TestFromEnv:
    def test_reads_environment(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        monkeypatch.setenv("CLAY_PROFILE_PATH", str(tmp_path / "profile"))
        monkeypatch.setenv("CLAY_EMAIL", "ops@example.com")
        monkeypatch.setenv("HEADLESS", "true")
        monkeypatch.setenv("DRY_RUN", "TRUE")
        monkeypatch.setenv("ENABLE_SCREENSHOTS", "false")
        monkeypatch.setenv("CLAY_TOOL_PREFIX", "playwright_")
        monkeypatch.setenv("CLAY_BASE_URL", "https://staging.clay.test/")
        monkeypatch.setenv("WEBAPP_PORT", "8080")

        config = ClayConfig.from_env(tmp_path / "missing.env")

        assert config.session.profile_path == tmp_path / "profile"
        assert config.session.identity == "ops@example.com"
        assert config.options.headless is True
        assert config.options.dry_run is True
        assert config.options.enable_screenshots is False
        assert config.options.tool_prefix == "playwright_"
        assert config.urls.login == "https://staging.clay.test/login"
        assert config.server.port == 8080

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        env_file = tmp_path / ".env"
        env_file.write_text("CLAY_EMAIL=dotenv@example.com\nCLAY_LOG_LEVEL=DEBUG\n")

        config = ClayConfig.from_env(env_file)

        assert config.session.identity == "dotenv@example.com"
        assert config.options.log_level == "DEBUG"

    def test_defaults_without_env(self, monkeypatch, tmp_path):
        clear_env(monkeypatch)
        config = ClayConfig.from_env(tmp_path / "missing.env")
        assert config.options.dry_run is False
        assert config.options.tool_prefix == ""
        assert config.options.screenshot_dir == Path("/tmp/clay-screenshots")
        assert (config.server.host, config.server.port) == ("127.0.0.1", 3001)
