"""Session snapshot persistence."""

from claypilot.session.store import SessionInfo, SessionSnapshot, SessionStore

__all__ = ["SessionInfo", "SessionSnapshot", "SessionStore"]
