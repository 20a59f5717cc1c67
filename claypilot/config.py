"""Configuration for the target application: URLs, timeouts, delays, retries, session."""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from claypilot.core.errors import is_retryable_error
from claypilot.core.retry import Backoff, RetryPolicy


@dataclass
class UrlSettings:
    base: str = "https://app.clay.com"
    login: str = "https://app.clay.com/login"
    dashboard: str = "https://app.clay.com/workspaces"
    tables: str = "https://app.clay.com/workspaces"

    def table(self, table_id: str) -> str:
        return f"{self.tables.rstrip('/')}/{table_id}"


@dataclass
class TimeoutSettings:
    """All values in seconds."""

    navigation: float = 30.0
    element_wait: float = 15.0
    network_idle: float = 10.0
    short_wait: float = 2.0
    medium_wait: float = 5.0
    long_wait: float = 15.0
    enrichment_run: float = 300.0
    csv_upload: float = 120.0
    probe: float = 3.0


@dataclass
class DelaySettings:
    """Settle delays after UI actions, in seconds."""

    between_actions: float = 0.5
    after_click: float = 0.3
    after_type: float = 0.2
    dry_run: float = 0.3
    poll_interval: float = 5.0
    settle: float = 2.0
    upload_poll_interval: float = 1.0


@dataclass
class RetrySettings:
    click: tuple[int, Backoff] = (3, Backoff.EXPONENTIAL)
    type: tuple[int, Backoff] = (3, Backoff.LINEAR)
    navigation: tuple[int, Backoff] = (2, Backoff.EXPONENTIAL)
    enrichment: tuple[int, Backoff] = (1, Backoff.LINEAR)
    base_delay: float = 1.0

    def policy(self, name: str, timeout: float | None = None) -> RetryPolicy:
        max_attempts, backoff = getattr(self, name)
        return RetryPolicy(
            max_attempts=max_attempts,
            backoff=backoff,
            base_delay=self.base_delay,
            timeout=timeout,
            retry_if=is_retryable_error,
        )


@dataclass
class SessionSettings:
    profile_path: Path = field(default_factory=lambda: Path.cwd() / ".clay-browser-profile")
    cookie_file: str = "cookies.json"
    max_age: datetime.timedelta = datetime.timedelta(days=7)
    identity: str | None = None
    authenticated_markers: tuple[str, ...] = ("/workspaces", "/tables", "/dashboard")
    login_markers: tuple[str, ...] = ("/login", "/signup")


@dataclass
class OptionSettings:
    enable_screenshots: bool = True
    screenshot_on_error: bool = True
    screenshot_dir: Path = Path("/tmp/clay-screenshots")
    headless: bool = False
    dry_run: bool = False
    tool_prefix: str = ""
    log_level: str = "INFO"


@dataclass
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 3001


@dataclass
class ClayConfig:
    """Central configuration, constructed once by the composition root."""

    urls: UrlSettings = field(default_factory=UrlSettings)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    delays: DelaySettings = field(default_factory=DelaySettings)
    retries: RetrySettings = field(default_factory=RetrySettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    options: OptionSettings = field(default_factory=OptionSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @classmethod
    def from_env(cls, env_file: str | os.PathLike | None = None) -> "ClayConfig":
        """Create config from environment variables (and an optional ``.env`` file)."""
        load_dotenv(env_file, override=False)
        config = cls()

        if os.getenv("CLAY_PROFILE_PATH"):
            config.session.profile_path = Path(os.environ["CLAY_PROFILE_PATH"])

        if os.getenv("CLAY_EMAIL"):
            config.session.identity = os.environ["CLAY_EMAIL"]

        if os.getenv("CLAY_BASE_URL"):
            base = os.environ["CLAY_BASE_URL"].rstrip("/")
            config.urls = UrlSettings(
                base=base,
                login=f"{base}/login",
                dashboard=f"{base}/workspaces",
                tables=f"{base}/workspaces",
            )

        if os.getenv("ENABLE_SCREENSHOTS"):
            config.options.enable_screenshots = os.environ["ENABLE_SCREENSHOTS"].lower() != "false"

        if os.getenv("SCREENSHOT_DIR"):
            config.options.screenshot_dir = Path(os.environ["SCREENSHOT_DIR"])

        if os.getenv("HEADLESS"):
            config.options.headless = os.environ["HEADLESS"].lower() == "true"

        if os.getenv("DRY_RUN"):
            config.options.dry_run = os.environ["DRY_RUN"].lower() == "true"

        if os.getenv("CLAY_TOOL_PREFIX"):
            config.options.tool_prefix = os.environ["CLAY_TOOL_PREFIX"]

        if os.getenv("CLAY_LOG_LEVEL"):
            config.options.log_level = os.environ["CLAY_LOG_LEVEL"]

        if os.getenv("WEBAPP_HOST"):
            config.server.host = os.environ["WEBAPP_HOST"]

        if os.getenv("WEBAPP_PORT"):
            config.server.port = int(os.environ["WEBAPP_PORT"])

        return config
