"""Local cache for the most recent conversation transcript."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from pydantic import ValidationError

from newschat.models.chat import CachedTranscript, Message, utcnow
from newschat.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_KEY = "newschat_history"
DEFAULT_HISTORY_TTL = timedelta(hours=1)


class HistoryCache:
    """
    Single-slot transcript cache with a freshness window.

    Only one transcript is retained at a time, keyed by the session it
    belongs to. Reads for another session, or of a slot older than the TTL,
    behave as a miss. Writes overwrite the slot (last writer wins).
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = DEFAULT_HISTORY_KEY,
        ttl: timedelta = DEFAULT_HISTORY_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._key = key
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, session_id: str) -> list[Message] | None:
        """Return the cached messages for ``session_id`` if present and fresh."""
        entry = self._read()
        if entry is None or entry.session_id != session_id:
            return None
        if self._clock() - entry.cached_at >= self._ttl:
            logger.debug("Cached history expired", extra={"session_id": session_id})
            return None
        return list(entry.messages)

    def set(self, session_id: str, messages: Sequence[Message]) -> None:
        entry = CachedTranscript(
            session_id=session_id,
            messages=list(messages),
            cached_at=self._clock(),
        )
        if not self._store.set(self._key, entry.model_dump_json()):
            logger.warning(
                "Failed to cache chat history",
                extra={"session_id": session_id, "message_count": len(entry.messages)},
            )

    def clear(self, session_id: str) -> None:
        """Remove the slot only if it still belongs to ``session_id``."""
        # Read and delete happen without a suspension point in between.
        entry = self._read()
        if entry is None or entry.session_id != session_id:
            return
        self._store.remove(self._key)
        logger.info("Cached history cleared", extra={"session_id": session_id})

    def clear_all(self) -> None:
        self._store.remove(self._key)

    def _read(self) -> CachedTranscript | None:
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            return CachedTranscript.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring corrupt cached history: {exc}")
            return None
