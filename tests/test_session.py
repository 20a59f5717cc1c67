"""Unit tests for SessionStore: persistence, soft expiry and the URL heuristic."""

from __future__ import annotations

import datetime
import json
import shutil
import tempfile
from pathlib import Path

from claypilot.config import SessionSettings
from claypilot.session.store import SessionStore

T0 = datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


class TestSessionStore:
    def setup_method(self):
        self.tmpdir = tempfile.mkdtemp()
        self.profile = Path(self.tmpdir) / "profile"
        self.clock = FakeClock()
        self.store = SessionStore(self.profile, clock=self.clock)

    def teardown_method(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    # ------------------------------------------------------------------ profile directory

    def test_ensure_profile_directory_idempotent(self):
        assert self.store.ensure_profile_directory() == self.profile
        assert self.store.ensure_profile_directory() == self.profile
        assert self.profile.is_dir()

    # ------------------------------------------------------------------ save / load

    def test_save_writes_camel_case_snapshot(self):
        path = self.store.save_session(["token-a", {"k": 1}], identity="ops@example.com")
        data = json.loads(path.read_text())
        assert data["credentials"] == ["token-a", {"k": 1}]
        assert data["identity"] == "ops@example.com"
        assert data["savedAt"].startswith("2026-03-01T12:00:00")

    def test_save_omits_missing_identity(self):
        data = json.loads(self.store.save_session(["t"]).read_text())
        assert "identity" not in data

    def test_save_overwrites(self):
        self.store.save_session(["old"])
        self.store.save_session(["new"])
        assert self.store.load_session() == ["new"]

    def test_load_missing_returns_none(self):
        assert self.store.load_session() is None

    def test_load_corrupt_returns_none(self):
        self.store.ensure_profile_directory()
        self.store.session_file.write_text("{not json")
        assert self.store.load_session() is None

    def test_load_undecodable_returns_none(self):
        self.store.ensure_profile_directory()
        self.store.session_file.write_bytes(b"\xff\xfe\x00garbage")
        assert self.store.load_session() is None
        assert self.store.is_session_valid() is False
        assert self.store.get_session_info().exists is False

    # ------------------------------------------------------------------ soft expiry

    def test_just_under_seven_days_is_loaded(self):
        self.store.save_session(["t"])
        self.clock.now = T0 + datetime.timedelta(days=7) - datetime.timedelta(seconds=1)
        assert self.store.load_session() == ["t"]
        assert self.store.is_session_valid() is True

    def test_over_seven_days_is_none_but_file_kept(self):
        self.store.save_session(["t"])
        self.clock.now = T0 + datetime.timedelta(days=7, seconds=1)
        assert self.store.load_session() is None
        assert self.store.is_session_valid() is False
        assert self.store.session_file.exists()

    def test_custom_max_age(self):
        store = SessionStore(
            self.profile,
            settings=SessionSettings(max_age=datetime.timedelta(hours=1)),
            clock=self.clock,
        )
        store.save_session(["t"])
        self.clock.now = T0 + datetime.timedelta(hours=2)
        assert store.load_session() is None

    # ------------------------------------------------------------------ clear / info

    def test_clear_session(self):
        self.store.save_session(["t"])
        assert self.store.clear_session() is True
        assert not self.store.session_file.exists()
        assert self.store.clear_session() is False

    def test_session_info(self):
        self.store.save_session(["t"], identity="ops@example.com")
        self.clock.now = T0 + datetime.timedelta(days=3, hours=5)
        info = self.store.get_session_info()
        assert info.exists is True
        assert info.age_days == 3
        assert info.identity == "ops@example.com"

    def test_session_info_never_raises(self):
        assert self.store.get_session_info().exists is False
        self.store.ensure_profile_directory()
        self.store.session_file.write_text('{"credentials": "nope"}')
        assert self.store.get_session_info().exists is False


class TestIsAuthenticated:
    def setup_method(self):
        self.store = SessionStore(Path(tempfile.mkdtemp()))

    def test_authenticated_marker_only(self):
        assert self.store.is_authenticated("https://app.clay.com/workspaces/123") is True

    def test_login_marker_dominates(self):
        assert self.store.is_authenticated("https://app.clay.com/login?next=/workspaces") is False

    def test_no_marker(self):
        assert self.store.is_authenticated("https://app.clay.com/") is False

    def test_empty_url(self):
        assert self.store.is_authenticated("") is False
