"""
Integration tests against a running news chat backend.

Set NEWSCHAT_API_BASE_URL and pass --run-integration to enable.
"""

import os

import pytest

from newschat.client.http import HttpChatClient
from newschat.conversations.cache import HistoryCache
from newschat.conversations.controller import ConversationController, ConversationPhase
from newschat.sessions.store import SessionStore
from newschat.storage.base import MemoryKeyValueStore


@pytest.fixture
def base_url():
    url = os.getenv("NEWSCHAT_API_BASE_URL")
    if not url:
        pytest.skip("NEWSCHAT_API_BASE_URL not set for integration test.")
    return url


@pytest.mark.integration
@pytest.mark.asyncio
async def test_health_and_articles(base_url):
    async with HttpChatClient(base_url=base_url) as client:
        assert await client.is_api_available() is True
        listing = await client.get_articles()

    assert isinstance(listing.articles, list)


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.asyncio
async def test_conversation_round_trip(base_url):
    store = MemoryKeyValueStore()
    history_cache = HistoryCache(store)
    sessions = SessionStore(store, history_cache)

    async with HttpChatClient(base_url=base_url) as client:
        controller = ConversationController(sessions, history_cache, client)
        session_id = await controller.start()
        assert controller.phase is ConversationPhase.READY

        reply = await controller.send_message("What are today's top headlines?")
        assert reply is not None
        assert not reply.is_error

        page = await client.get_history(session_id)
        assert len(page.messages) >= 2

        assert await controller.clear_history() is True
        await client.delete_session(session_id)
