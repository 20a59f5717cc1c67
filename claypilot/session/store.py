"""Session persistence with soft, age-based expiry."""

from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from claypilot.config import SessionSettings

logger = logging.getLogger(__name__)

_DAY = datetime.timedelta(days=1)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class SessionSnapshot(BaseModel):
    """On-disk shape: ``{credentials, savedAt, identity?}``. Credentials are opaque."""

    model_config = ConfigDict(populate_by_name=True)

    credentials: list[Any] = Field(default_factory=list)
    saved_at: datetime.datetime = Field(alias="savedAt")
    identity: str | None = None

    def age(self, now: datetime.datetime) -> datetime.timedelta:
        saved = self.saved_at
        if saved.tzinfo is None:
            saved = saved.replace(tzinfo=datetime.timezone.utc)
        return now - saved


@dataclass
class SessionInfo:
    exists: bool
    age_days: int | None = None
    identity: str | None = None


class SessionStore:
    """
    Owns the session file inside the browser profile directory.

    Directory layout::

        {profile_path}/
            cookies.json          # SessionSnapshot

    :meth:`load_session` treats snapshots older than ``max_age`` as absent but
    never deletes them; only :meth:`clear_session` removes the file.
    """

    def __init__(
        self,
        profile_path: str | Path | None = None,
        *,
        settings: SessionSettings | None = None,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._settings = settings or SessionSettings()
        self._profile = Path(profile_path or self._settings.profile_path)
        self._clock = clock

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def session_file(self) -> Path:
        return self._profile / self._settings.cookie_file

    @property
    def max_age(self) -> datetime.timedelta:
        return self._settings.max_age

    def _read_snapshot(self) -> SessionSnapshot:
        """Raises ``OSError`` or ``ValueError`` (bad encoding, bad JSON, bad shape)."""
        data = json.loads(self.session_file.read_text(encoding="utf-8"))
        return SessionSnapshot.model_validate(data)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ensure_profile_directory(self) -> Path:
        if not self._profile.exists():
            self._profile.mkdir(parents=True, exist_ok=True)
            logger.info("Created browser profile directory: %s", self._profile)
        return self._profile

    @property
    def profile_path(self) -> Path:
        return self.ensure_profile_directory()

    def save_session(self, credentials: list[Any], identity: str | None = None) -> Path:
        """Write a fresh snapshot, replacing any previous one."""
        self.ensure_profile_directory()
        snapshot = SessionSnapshot(
            credentials=list(credentials),
            saved_at=self._clock(),
            identity=identity,
        )
        self.session_file.write_text(
            snapshot.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )
        logger.info("Session saved to %s", self.session_file)
        return self.session_file

    def load_session(self) -> list[Any] | None:
        """Return stored credentials, or ``None`` if absent, unreadable or too old."""
        if not self.session_file.exists():
            logger.info("No existing session found")
            return None

        try:
            snapshot = self._read_snapshot()
        except (OSError, ValueError, ValidationError) as exc:
            logger.error("Failed to load session: %s", exc)
            return None

        age = snapshot.age(self._clock())
        if age > self.max_age:
            logger.info("Session expired (>%d days old), need to re-login", self.max_age.days)
            return None

        logger.info("Loaded session from %d days ago", max(0, age // _DAY))
        return snapshot.credentials

    def is_session_valid(self) -> bool:
        try:
            snapshot = self._read_snapshot()
        except (OSError, ValueError, ValidationError):
            return False
        return snapshot.age(self._clock()) <= self.max_age

    def is_authenticated(self, current_url: str) -> bool:
        """
        URL heuristic: an authenticated marker must be present and no login
        marker may be. A login marker always wins.
        """
        url = current_url or ""
        logged_in = any(marker in url for marker in self._settings.authenticated_markers)
        on_login_page = any(marker in url for marker in self._settings.login_markers)
        return logged_in and not on_login_page

    def clear_session(self) -> bool:
        """Delete the snapshot. Returns True if a file was removed."""
        try:
            self.session_file.unlink()
        except FileNotFoundError:
            return False
        logger.info("Session cleared")
        return True

    def get_session_info(self) -> SessionInfo:
        """Never raises: any read or parse problem reports ``exists=False``."""
        try:
            snapshot = self._read_snapshot()
            age = snapshot.age(self._clock())
        except Exception:
            return SessionInfo(exists=False)
        return SessionInfo(
            exists=True,
            age_days=max(0, age // _DAY),
            identity=snapshot.identity,
        )
