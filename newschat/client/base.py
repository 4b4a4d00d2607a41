"""
Base Chat Client

Abstract interface for the remote chat/article service plus the error types
every implementation raises. The conversation controller depends only on
this interface, so tests can substitute an in-memory double.
"""

from abc import ABC, abstractmethod
from typing import Any

from newschat.models.article import ArticleList, ArticleSearchResult
from newschat.models.chat import HistoryPage, SendMessageResult


class ChatClientError(Exception):
    """
    Base exception for remote service failures.

    Attributes:
        message: User-facing description, already prefixed with the operation
        operation: Short name of the failed call (e.g. "send_message")
        status_code: HTTP status if the server answered
        recoverable: Whether repeating the user action may succeed
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ):
        self.message = message
        self.operation = operation
        self.status_code = status_code
        self.recoverable = recoverable
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "message": self.message,
            "operation": self.operation,
            "status_code": self.status_code,
            "recoverable": self.recoverable,
            "type": self.__class__.__name__,
        }


class ChatTransportError(ChatClientError):
    """Network unreachable or request timed out."""

    pass


class ChatServerError(ChatClientError):
    """The service answered with a structured failure or an unusable payload."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
    ):
        recoverable = status_code is None or status_code >= 500 or status_code == 429
        super().__init__(
            message, operation=operation, status_code=status_code, recoverable=recoverable
        )


class BaseChatClient(ABC):
    """
    Abstract client for the RAG news chat service.

    Implementations never retry on their own: each call either returns the
    parsed payload or raises a ChatClientError subclass.
    """

    @abstractmethod
    async def send_message(
        self,
        session_id: str,
        message: str,
        options: dict[str, Any] | None = None,
    ) -> SendMessageResult:
        """Send a user message and return the assistant reply."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def get_history(
        self,
        session_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> HistoryPage:
        """Fetch the authoritative history for a session."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def clear_history(self, session_id: str) -> dict[str, Any]:
        """Clear a session's history on the server."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def get_articles(self) -> ArticleList:
        """List available articles."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def search_articles(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
    ) -> ArticleSearchResult:
        """Search articles by free text and optional filters."""
        pass  # pragma: no cover - abstract method

    async def aclose(self) -> None:
        """Release network resources (no-op by default)."""
        return None
