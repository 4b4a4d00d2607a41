"""
Conversation Controller

Owns the transcript of the currently displayed session and keeps it in step
with the server:

- Loading a session publishes the cached transcript first (if fresh), then
  replaces it with the server's history once that arrives.
- Sending appends the user message optimistically, then the assistant reply
  or a synthetic error reply.
- Switching session or article always starts a brand-new session.

Every in-flight operation is tagged with the session id and a generation
counter taken when it started. When it resolves, its result is applied only
if that tag is still current; otherwise it is dropped.

Usage:
    controller = ConversationController(sessions, history_cache, client)
    controller.subscribe(render)
    await controller.start()
    await controller.send_message("What's the news?")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from newschat.client.base import BaseChatClient, ChatClientError, ChatTransportError
from newschat.conversations.cache import HistoryCache
from newschat.models.article import Article
from newschat.models.chat import Message

if TYPE_CHECKING:
    from newschat.sessions.store import SessionStore

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load chat history. Starting fresh conversation."
CLEAR_FAILED_MESSAGE = "Failed to clear chat history."
ARTICLE_PROMPT = "Tell me about: {title}"


class ConversationPhase(str, Enum):
    IDLE = "idle"  # no session entered yet
    LOADING_HISTORY = "loading_history"
    READY = "ready"


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    SERVER = "server"


@dataclass(frozen=True)
class ConversationError:
    """A surfaced failure of a history load, send or clear."""

    kind: ErrorKind
    message: str
    operation: str

    @classmethod
    def from_client_error(
        cls,
        exc: ChatClientError,
        operation: str,
        message: str | None = None,
    ) -> ConversationError:
        kind = ErrorKind.TRANSPORT if isinstance(exc, ChatTransportError) else ErrorKind.SERVER
        return cls(kind=kind, message=message or exc.message, operation=operation)


@dataclass(frozen=True)
class ConversationSnapshot:
    """Immutable view of the controller state handed to the presentation layer."""

    session_id: str | None
    messages: tuple[Message, ...]
    phase: ConversationPhase
    is_sending: bool
    error: ConversationError | None

    @property
    def is_loading_history(self) -> bool:
        return self.phase is ConversationPhase.LOADING_HISTORY

    @property
    def is_ready(self) -> bool:
        return self.phase is ConversationPhase.READY


@dataclass(frozen=True)
class _OperationTag:
    session_id: str
    generation: int


Listener = Callable[[ConversationSnapshot], None]


class ConversationController:
    """Transcript state machine for the active chat session."""

    def __init__(
        self,
        sessions: SessionStore,
        history_cache: HistoryCache,
        client: BaseChatClient,
        *,
        history_limit: int = 50,
    ) -> None:
        self._sessions = sessions
        self._history = history_cache
        self._client = client
        self._history_limit = history_limit

        self._session_id: str | None = None
        self._generation = 0
        self._messages: list[Message] = []
        self._phase = ConversationPhase.IDLE
        self._sending = False
        self._clearing = False
        self._error: ConversationError | None = None
        self._load_task: asyncio.Task[None] | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def phase(self) -> ConversationPhase:
        return self._phase

    @property
    def is_sending(self) -> bool:
        return self._sending

    @property
    def error(self) -> ConversationError | None:
        return self._error

    def snapshot(self) -> ConversationSnapshot:
        return ConversationSnapshot(
            session_id=self._session_id,
            messages=tuple(self._messages),
            phase=self._phase,
            is_sending=self._sending,
            error=self._error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _current_tag(self) -> _OperationTag | None:
        if self._session_id is None:
            return None
        return _OperationTag(self._session_id, self._generation)

    def _is_current(self, tag: _OperationTag) -> bool:
        return tag == self._current_tag()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> str:
        """Restore the persisted session (or create one) and load its history."""
        session_id = self._sessions.get_current_session_id()
        if session_id is None:
            session_id = self._sessions.create_session()
        else:
            logger.info("Restored existing session", extra={"session_id": session_id})
        await self.enter_session(session_id)
        return session_id

    async def enter_session(self, session_id: str) -> None:
        """
        Make ``session_id`` the displayed session and run the history load.

        Re-entering the session that is already loading joins the in-flight
        load instead of starting another one.
        """
        if (
            session_id == self._session_id
            and self._phase is ConversationPhase.LOADING_HISTORY
            and self._load_task is not None
        ):
            await self._load_task
            return

        self._generation += 1
        self._session_id = session_id
        self._messages = []
        self._sending = False
        self._clearing = False
        self._error = None
        self._phase = ConversationPhase.LOADING_HISTORY
        self._notify()

        tag = _OperationTag(session_id, self._generation)
        self._load_task = asyncio.create_task(self._load_history(tag))
        await self._load_task

    async def new_session(self) -> str:
        """Start a fresh conversation, never reusing the current session."""
        session_id = self._sessions.create_session()
        self._history.clear(session_id)
        await self.enter_session(session_id)
        return session_id

    async def select_article(self, article: Article) -> str:
        """
        Start a fresh session about ``article`` and ask the opening question.

        The question goes out only after the history load has settled, so the
        load cannot overwrite the exchange.
        """
        session_id = await self.new_session()
        if self._session_id == session_id and self._phase is ConversationPhase.READY:
            await self.send_message(ARTICLE_PROMPT.format(title=article.title))
        return session_id

    async def retry(self) -> None:
        """Clear the error and reload the current session's history from scratch."""
        if self._session_id is None or self._sending:
            return
        await self.enter_session(self._session_id)

    # ------------------------------------------------------------------
    # History load / reconciliation
    # ------------------------------------------------------------------

    async def _load_history(self, tag: _OperationTag) -> None:
        cached = self._history.get(tag.session_id)
        if cached is not None:
            self._messages = list(cached)
            self._notify()
            logger.debug(
                "Showing cached history",
                extra={"session_id": tag.session_id, "message_count": len(cached)},
            )

        try:
            page = await self._client.get_history(tag.session_id, limit=self._history_limit)
        except ChatClientError as exc:
            if self._is_current(tag):
                logger.warning(
                    f"Failed to load chat history: {exc.message}",
                    extra={"session_id": tag.session_id, "had_cache": cached is not None},
                )
                if cached is not None:
                    self._error = ConversationError.from_client_error(exc, "load_history")
                else:
                    self._messages = []
                    self._error = ConversationError.from_client_error(
                        exc, "load_history", message=LOAD_FAILED_MESSAGE
                    )
        else:
            if self._is_current(tag):
                self._messages = list(page.messages)
                self._history.set(tag.session_id, self._messages)
                self._sessions.touch_activity(tag.session_id)
        finally:
            if self._is_current(tag):
                self._phase = ConversationPhase.READY
                self._notify()
            else:
                logger.debug(
                    "Discarding stale history load",
                    extra={"session_id": tag.session_id},
                )

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> Message | None:
        """
        Send ``text`` for the current session.

        Returns the assistant reply that was appended (the server's reply or a
        synthetic error reply), or None when the send was skipped or its
        session is no longer displayed.
        """
        content = (text or "").strip()
        tag = self._current_tag()
        if not content or tag is None:
            return None
        if self._phase is not ConversationPhase.READY or self._sending or self._clearing:
            logger.debug(
                "Ignoring send while busy",
                extra={
                    "phase": self._phase.value,
                    "sending": self._sending,
                    "clearing": self._clearing,
                },
            )
            return None

        self._messages.append(Message.user(content))
        self._sending = True
        self._error = None
        self._notify()

        try:
            result = await self._client.send_message(tag.session_id, content)
        except ChatClientError as exc:
            if not self._is_current(tag):
                return None
            logger.warning(
                f"Failed to send message: {exc.message}",
                extra={
                    "session_id": tag.session_id,
                    "operation": exc.operation,
                    "status_code": exc.status_code,
                },
            )
            reply = Message.error_reply(exc.message)
            self._messages.append(reply)
            self._error = ConversationError.from_client_error(exc, "send_message")
            return reply
        else:
            if not self._is_current(tag):
                logger.debug(
                    "Discarding reply for stale session",
                    extra={"session_id": tag.session_id},
                )
                return None
            reply = result.message
            self._messages.append(reply)
            self._history.set(tag.session_id, self._cacheable_messages())
            self._sessions.touch_activity(tag.session_id)
            return reply
        finally:
            if self._is_current(tag):
                self._sending = False
                self._notify()

    def _cacheable_messages(self) -> list[Message]:
        # Synthetic error replies stay out of the cache.
        return [message for message in self._messages if not message.is_error]

    # ------------------------------------------------------------------
    # Clear
    # ------------------------------------------------------------------

    async def clear_history(self) -> bool:
        """
        Clear the current session's history on the server, then locally.

        Sends are refused until the server answers, so no reply can land in
        the transcript that is about to be emptied.
        """
        tag = self._current_tag()
        if (
            tag is None
            or self._phase is not ConversationPhase.READY
            or self._sending
            or self._clearing
        ):
            return False

        self._clearing = True
        try:
            await self._client.clear_history(tag.session_id)
        except ChatClientError as exc:
            if self._is_current(tag):
                logger.warning(
                    f"Failed to clear chat history: {exc.message}",
                    extra={"session_id": tag.session_id},
                )
                self._error = ConversationError.from_client_error(
                    exc, "clear_history", message=CLEAR_FAILED_MESSAGE
                )
                self._notify()
            return False
        finally:
            if self._is_current(tag):
                self._clearing = False

        if not self._is_current(tag):
            return False
        self._messages = []
        self._history.clear(tag.session_id)
        self._error = None
        self._notify()
        logger.info("Chat history cleared", extra={"session_id": tag.session_id})
        return True
