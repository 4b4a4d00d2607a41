"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

import pytest

from newschat.client.base import BaseChatClient
from newschat.config import clear_settings_cache
from newschat.conversations.cache import HistoryCache
from newschat.models.article import Article, ArticleList, ArticleSearchResult
from newschat.models.chat import HistoryPage, Message, MessageMetadata, SendMessageResult, Source
from newschat.sessions.store import SessionStore
from newschat.storage.base import MemoryKeyValueStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires a running news chat backend)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 1 second)")
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    yield


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Keep settings away from the developer's .env and home directory.

    Runs automatically for all tests.
    """
    monkeypatch.setenv("NEWSCHAT_ENV_SOURCE", "system")
    monkeypatch.setenv("NEWSCHAT_STORAGE_PATH", str(tmp_path / "storage.json"))
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Clock and Local State
# ============================================================================


class FakeClock:
    """Manually advanced clock for freshness and validity checks."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 9, 20, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def history_cache(kv_store, clock) -> HistoryCache:
    return HistoryCache(kv_store, clock=clock)


@pytest.fixture
def session_store(kv_store, history_cache, clock) -> SessionStore:
    return SessionStore(kv_store, history_cache, clock=clock)


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def make_message():
    """
    Factory for transcript messages.

    Usage:
        def test_something(make_message):
            reply = make_message("assistant", "Here is the news")
    """

    def _make(role: str, content: str, **metadata) -> Message:
        return Message(
            role=role,
            content=content,
            metadata=MessageMetadata(**metadata) if metadata else None,
        )

    return _make


@pytest.fixture
def sample_reply() -> Message:
    """Assistant reply citing one retrieved article."""
    return Message(
        role="assistant",
        content="The Supreme Court asked the UGC to respond to the petition.",
        metadata=MessageMetadata(
            rag_used=True,
            sources=[
                Source(
                    title="SC seeks UGC response on caste bias plea",
                    source="The Hindu",
                    relevance_score=0.87,
                    url="https://example.com/sc-ugc",
                )
            ],
            model="gemini-1.5-flash",
        ),
    )


# ============================================================================
# Fake Chat Service
# ============================================================================


class FakeChatClient(BaseChatClient):
    """
    In-memory chat service.

    Calls can be held open by queueing ``asyncio.Event`` gates: each call to
    ``get_history``, ``send_message`` or ``clear_history`` pops the next gate
    and waits on it.
    Errors queued in ``history_errors``/``send_errors`` are raised in order.
    """

    def __init__(self):
        self.histories: dict[str, list[Message]] = {}
        self.articles: list[Article] = []
        self.history_gates: list[asyncio.Event] = []
        self.send_gates: list[asyncio.Event] = []
        self.clear_gates: list[asyncio.Event] = []
        self.history_errors: list[Exception | None] = []
        self.send_errors: list[Exception | None] = []
        self.clear_error: Exception | None = None
        self.history_calls: list[str] = []
        self.sent: list[tuple[str, str]] = []
        self.cleared: list[str] = []
        self.closed = False

    def hold_history(self) -> asyncio.Event:
        gate = asyncio.Event()
        self.history_gates.append(gate)
        return gate

    def hold_send(self) -> asyncio.Event:
        gate = asyncio.Event()
        self.send_gates.append(gate)
        return gate

    def hold_clear(self) -> asyncio.Event:
        gate = asyncio.Event()
        self.clear_gates.append(gate)
        return gate

    async def get_history(self, session_id, limit=50, offset=0):
        self.history_calls.append(session_id)
        if self.history_gates:
            await self.history_gates.pop(0).wait()
        if self.history_errors:
            error = self.history_errors.pop(0)
            if error is not None:
                raise error
        return HistoryPage(messages=list(self.histories.get(session_id, [])))

    async def send_message(self, session_id, message, options=None):
        self.sent.append((session_id, message))
        if self.send_gates:
            await self.send_gates.pop(0).wait()
        if self.send_errors:
            error = self.send_errors.pop(0)
            if error is not None:
                raise error
        reply = Message(role="assistant", content=f"Answer to: {message}")
        self.histories.setdefault(session_id, []).extend(
            [Message.user(message), reply]
        )
        return SendMessageResult(message=reply)

    async def clear_history(self, session_id):
        if self.clear_gates:
            await self.clear_gates.pop(0).wait()
        if self.clear_error is not None:
            raise self.clear_error
        self.cleared.append(session_id)
        self.histories.pop(session_id, None)
        return {"success": True}

    async def get_articles(self):
        return ArticleList(articles=list(self.articles))

    async def search_articles(self, query, filters=None):
        wanted = query.lower()
        matches = [article for article in self.articles if wanted in article.title.lower()]
        return ArticleSearchResult(articles=matches, search_info={"query": query})

    async def is_api_available(self):
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_client() -> FakeChatClient:
    return FakeChatClient()


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def run_pending():
    return settle
