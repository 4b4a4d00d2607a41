"""
Session Store

Owns the client-side session identity: creation, lookup, activity
timestamps and the advisory validity window. Exactly one session is current
at a time; creating a new one invalidates the cached transcript of the
previous one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import uuid4

from pydantic import ValidationError

from newschat.conversations.cache import HistoryCache
from newschat.models.chat import Session, utcnow
from newschat.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "newschat_session"
DEFAULT_SESSION_VALIDITY = timedelta(hours=24)


class SessionStore:
    """Persist and query the current chat session."""

    def __init__(
        self,
        store: KeyValueStore,
        history_cache: HistoryCache,
        *,
        key: str = DEFAULT_SESSION_KEY,
        validity: timedelta = DEFAULT_SESSION_VALIDITY,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._history_cache = history_cache
        self._key = key
        self._validity = validity
        self._clock = clock

    def create_session(self) -> str:
        """
        Start a new session and make it current.

        Any cached transcript is dropped so the new session can never be shown
        a stale one. A failed write is logged and the id is still returned;
        the caller then proceeds with an in-memory session.
        """
        now = self._clock()
        session = Session(id=str(uuid4()), created_at=now, last_activity=now)
        self._history_cache.clear_all()
        if self._store.set(self._key, session.model_dump_json()):
            logger.info("Created new session", extra={"session_id": session.id})
        else:
            logger.warning(
                "Failed to persist new session, continuing in memory",
                extra={"session_id": session.id},
            )
        return session.id

    def get_session(self) -> Session | None:
        """Return the persisted session, or None if missing or malformed."""
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed session record: {exc}")
            return None

    def get_current_session_id(self) -> str | None:
        session = self.get_session()
        return session.id if session else None

    def touch_activity(self, session_id: str) -> None:
        """Refresh ``last_activity``, only for the session that is still current."""
        session = self.get_session()
        if session is None or session.id != session_id:
            logger.debug(
                "Skipping activity update for non-current session",
                extra={"session_id": session_id},
            )
            return
        session.last_activity = self._clock()
        if not self._store.set(self._key, session.model_dump_json()):
            logger.warning("Failed to update session activity", extra={"session_id": session_id})

    def is_valid(self, session: Session | None) -> bool:
        """Advisory check: has the session been active within the validity window?"""
        if session is None:
            return False
        return self._clock() - session.last_activity < self._validity

    def display_name(self, session: Session | None) -> str:
        """Relative-time label derived from the session's creation time."""
        if session is None:
            return "New Chat"
        minutes = int((self._clock() - session.created_at).total_seconds() // 60)
        if minutes < 1:
            return "Just now"
        if minutes < 60:
            return f"{minutes}m ago"
        if minutes < 24 * 60:
            return f"{minutes // 60}h ago"
        return session.created_at.strftime("%Y-%m-%d")

    def clear(self) -> None:
        """Full client reset: forget the session and its cached transcript."""
        self._store.remove(self._key)
        self._history_cache.clear_all()
        logger.info("Session cache cleared")
