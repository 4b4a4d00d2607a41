"""
Component Factory

Composition root wiring the storage, session, cache, client and controller
layers from settings. Every component is constructed explicitly and injected;
nothing here is a module-level singleton.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from newschat.articles.browser import ArticleBrowser
from newschat.client.base import BaseChatClient
from newschat.client.http import HttpChatClient
from newschat.config import Settings
from newschat.conversations.cache import HistoryCache
from newschat.conversations.controller import ConversationController
from newschat.sessions.store import SessionStore
from newschat.storage.base import KeyValueStore
from newschat.storage.file_store import JsonFileKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class ChatComponents:
    """Everything the presentation layer needs for one client process."""

    store: KeyValueStore
    history_cache: HistoryCache
    sessions: SessionStore
    client: BaseChatClient
    controller: ConversationController
    articles: ArticleBrowser

    async def aclose(self) -> None:
        self.articles.cancel_pending_search()
        await self.client.aclose()


def create_local_state(
    settings: Settings,
    store: KeyValueStore | None = None,
) -> tuple[KeyValueStore, HistoryCache, SessionStore]:
    """Build the persisted store and the two passive stores layered on it."""
    store = store or JsonFileKeyValueStore(settings.storage.path)
    history_cache = HistoryCache(
        store,
        key=settings.storage.history_key,
        ttl=timedelta(seconds=settings.cache.history_ttl_seconds),
    )
    sessions = SessionStore(
        store,
        history_cache,
        key=settings.storage.session_key,
        validity=timedelta(hours=settings.cache.session_validity_hours),
    )
    return store, history_cache, sessions


def create_components(
    settings: Settings,
    *,
    store: KeyValueStore | None = None,
    client: BaseChatClient | None = None,
) -> ChatComponents:
    """
    Wire a complete client from settings.

    Args:
        settings: Application settings
        store: Optional key-value store override (defaults to the JSON file store)
        client: Optional chat client override (defaults to HttpChatClient)

    Returns:
        ChatComponents sharing one store and one client
    """
    store, history_cache, sessions = create_local_state(settings, store)
    client = client or HttpChatClient.from_settings(settings.api)
    controller = ConversationController(
        sessions,
        history_cache,
        client,
        history_limit=settings.api.history_limit,
    )
    articles = ArticleBrowser(client, debounce_seconds=settings.cache.search_debounce_ms / 1000)
    logger.debug(
        "Chat components created",
        extra={"store": type(store).__name__, "client": type(client).__name__},
    )
    return ChatComponents(
        store=store,
        history_cache=history_cache,
        sessions=sessions,
        client=client,
        controller=controller,
        articles=articles,
    )
