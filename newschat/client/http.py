"""
HTTP Chat Client

httpx implementation of BaseChatClient for the RAG news backend.
Every call has a fixed timeout and maps failures onto ChatTransportError
(no answer) or ChatServerError (an answer we cannot use). Nothing is retried.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from newschat.client.base import (
    BaseChatClient,
    ChatServerError,
    ChatTransportError,
)
from newschat.config import ApiSettings
from newschat.models.article import ArticleList, ArticleSearchResult
from newschat.models.chat import HistoryPage, SendMessageResult

logger = logging.getLogger(__name__)

CONNECTION_HINT = "Unable to connect to server. Please check your connection."


async def _log_request(request: httpx.Request) -> None:
    logger.debug(f"API Request: {request.method} {request.url}")


async def _log_response(response: httpx.Response) -> None:
    logger.debug(f"API Response: {response.status_code} {response.request.url}")


class HttpChatClient(BaseChatClient):
    """
    Chat client talking JSON over HTTP.

    Endpoints (relative to the configured base URL):
        POST   /chat                      send a message
        GET    /chat/{session}/history    authoritative history
        POST   /chat/{session}/clear      clear history
        DELETE /chat/{session}            delete the server-side session
        POST   /search                    document search
        GET    /search/stats              search statistics
        GET    /health/services           service health
        GET    /articles                  article listing
        GET    /articles/stats            article statistics
        GET    /articles/search           article search
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001/api",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Service base URL including the /api prefix
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

        logger.info(
            f"Chat client initialized: {self.base_url}",
            extra={"base_url": self.base_url, "timeout": self.timeout},
        )

    @classmethod
    def from_settings(cls, settings: ApiSettings) -> "HttpChatClient":
        return cls(base_url=settings.base_url, timeout=settings.timeout)

    async def __aenter__(self) -> "HttpChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_message(
        self,
        session_id: str,
        message: str,
        options: dict[str, Any] | None = None,
    ) -> SendMessageResult:
        payload = await self._request(
            "POST",
            "/chat",
            operation="send_message",
            failure="Failed to send message",
            json={"sessionId": session_id, "message": message, "options": options or {}},
        )
        if not payload.get("success"):
            detail = self._payload_detail(payload) or "Request was not successful"
            raise ChatServerError(
                f"Failed to send message: {detail}",
                operation="send_message",
            )
        result = self._parse(SendMessageResult, payload, "send_message", "Failed to send message")
        if result.rag_context:
            logger.debug(
                "RAG context used",
                extra={
                    "session_id": session_id,
                    "contexts": len(result.rag_context.get("contexts") or []),
                    "rag_used": result.message.metadata.rag_used
                    if result.message.metadata
                    else None,
                },
            )
        return result

    async def get_history(
        self,
        session_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> HistoryPage:
        payload = await self._request(
            "GET",
            f"/chat/{quote(session_id, safe='')}/history",
            operation="get_history",
            failure="Failed to fetch chat history",
            params={"limit": limit, "offset": offset},
        )
        return self._parse(HistoryPage, payload, "get_history", "Failed to fetch chat history")

    async def clear_history(self, session_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/chat/{quote(session_id, safe='')}/clear",
            operation="clear_history",
            failure="Failed to clear chat history",
        )

    async def delete_session(self, session_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE",
            f"/chat/{quote(session_id, safe='')}",
            operation="delete_session",
            failure="Failed to delete session",
        )

    # ------------------------------------------------------------------
    # Search & service status
    # ------------------------------------------------------------------

    async def search_documents(
        self,
        query: str,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/search",
            operation="search_documents",
            failure="Failed to search documents",
            json={"query": query, "options": options or {}},
        )

    async def get_search_stats(self) -> dict[str, Any]:
        return await self._request(
            "GET",
            "/search/stats",
            operation="get_search_stats",
            failure="Failed to get search statistics",
        )

    async def get_health_status(self) -> dict[str, Any]:
        return await self._request(
            "GET",
            "/health/services",
            operation="get_health_status",
            failure="Failed to check service health",
        )

    async def is_api_available(self) -> bool:
        """Check if the API answers its health endpoint."""
        try:
            await self.get_health_status()
        except (ChatServerError, ChatTransportError):
            return False
        return True

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    async def get_articles(self) -> ArticleList:
        payload = await self._request(
            "GET",
            "/articles",
            operation="get_articles",
            failure="Failed to fetch articles",
        )
        return self._parse(ArticleList, payload, "get_articles", "Failed to fetch articles")

    async def get_article_stats(self) -> dict[str, Any]:
        return await self._request(
            "GET",
            "/articles/stats",
            operation="get_article_stats",
            failure="Failed to fetch article statistics",
        )

    async def search_articles(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
    ) -> ArticleSearchResult:
        payload = await self._request(
            "GET",
            "/articles/search",
            operation="search_articles",
            failure="Failed to search articles",
            params={"q": query, **(filters or {})},
        )
        return self._parse(
            ArticleSearchResult, payload, "search_articles", "Failed to search articles"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        failure: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error(f"{failure}: timeout", extra={"operation": operation})
            raise ChatTransportError(
                f"{failure}: Request timed out after {self.timeout:g} seconds.",
                operation=operation,
            ) from exc
        except httpx.RequestError as exc:
            logger.error(f"{failure}: {exc}", extra={"operation": operation})
            raise ChatTransportError(f"{failure}: {CONNECTION_HINT}", operation=operation) from exc

        if response.is_error:
            detail = self._server_detail(response)
            logger.error(
                f"API Response Error: {detail}",
                extra={"operation": operation, "status_code": response.status_code},
            )
            raise ChatServerError(
                f"{failure}: {detail}",
                operation=operation,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ChatServerError(
                f"{failure}: Invalid JSON in server response",
                operation=operation,
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise ChatServerError(
                f"{failure}: Unexpected response shape",
                operation=operation,
                status_code=response.status_code,
            )
        if payload.get("success") is False:
            detail = self._payload_detail(payload) or "Request was not successful"
            raise ChatServerError(
                f"{failure}: {detail}",
                operation=operation,
                status_code=response.status_code,
            )
        return payload

    @staticmethod
    def _parse(model, payload: dict[str, Any], operation: str, failure: str):
        try:
            return model.model_validate(payload.get("data") or {})
        except ValidationError as exc:
            logger.error(
                f"{failure}: malformed payload",
                extra={"operation": operation, "errors": exc.error_count()},
            )
            raise ChatServerError(
                f"{failure}: Malformed response from server",
                operation=operation,
            ) from exc

    @staticmethod
    def _payload_detail(payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if payload.get("message"):
            return str(payload["message"])
        return None

    @classmethod
    def _server_detail(cls, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        return cls._payload_detail(body) or response.reason_phrase or f"HTTP {response.status_code}"
