"""
Article Browser

Article listing, category filtering and search-as-you-type for picking a
conversation topic. Rapid search input is coalesced: each new query cancels
the pending one and only fires after a short quiet period.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from newschat.client.base import BaseChatClient, ChatClientError
from newschat.models.article import Article

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


class ArticleBrowser:
    """Client-side article state for the article picker."""

    def __init__(self, client: BaseChatClient, debounce_seconds: float = 0.3) -> None:
        self._client = client
        self.debounce_seconds = debounce_seconds
        self.articles: list[Article] = []
        self.search_info: dict[str, Any] | None = None
        self.error: str | None = None
        self._pending_search: asyncio.Task[list[Article]] | None = None

    async def load(self) -> list[Article]:
        """Fetch the full article list."""
        self.error = None
        try:
            listing = await self._client.get_articles()
        except ChatClientError as exc:
            self.error = exc.message
            raise
        self.articles = list(listing.articles)
        self.search_info = None
        logger.info("Loaded articles", extra={"article_count": len(self.articles)})
        return self.articles

    def categories(self) -> list[str]:
        """``"all"`` followed by each category in first-seen order."""
        seen = [ALL_CATEGORIES]
        for article in self.articles:
            if article.category and article.category not in seen:
                seen.append(article.category)
        return seen

    def filter(self, category: str = ALL_CATEGORIES) -> list[Article]:
        if not category or category.lower() == ALL_CATEGORIES:
            return list(self.articles)
        wanted = category.lower()
        return [
            article
            for article in self.articles
            if article.category and article.category.lower() == wanted
        ]

    def find(self, article_id: str) -> Article | None:
        for article in self.articles:
            if article.id == article_id:
                return article
        return None

    async def search(self, query: str, filters: dict[str, Any] | None = None) -> list[Article]:
        """Search immediately. A blank query reloads the full listing."""
        if not query.strip():
            return await self.load()
        self.error = None
        try:
            result = await self._client.search_articles(query.strip(), filters)
        except ChatClientError as exc:
            self.error = exc.message
            raise
        self.articles = list(result.articles)
        self.search_info = result.search_info
        return self.articles

    async def search_debounced(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
    ) -> list[Article] | None:
        """
        Schedule a search after the debounce delay, cancelling any pending one.

        Returns the results, or None if a newer query superseded this one.
        """
        self.cancel_pending_search()
        task = asyncio.create_task(self._delayed_search(query, filters))
        self._pending_search = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
        finally:
            if self._pending_search is task:
                self._pending_search = None

    def cancel_pending_search(self) -> None:
        if self._pending_search is not None and not self._pending_search.done():
            self._pending_search.cancel()
        self._pending_search = None

    async def _delayed_search(
        self,
        query: str,
        filters: dict[str, Any] | None,
    ) -> list[Article]:
        await asyncio.sleep(self.debounce_seconds)
        return await self.search(query, filters)
