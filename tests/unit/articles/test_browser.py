"""Unit tests for article browsing and debounced search."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from newschat.articles.browser import ALL_CATEGORIES, ArticleBrowser
from newschat.client.base import ChatTransportError
from newschat.models.article import Article


@pytest.fixture
def articles():
    return [
        Article(id="1", title="Monsoon arrives early", category="weather"),
        Article(id="2", title="Sensex hits record high", category="business"),
        Article(id="3", title="Heatwave warning for Delhi", category="Weather"),
        Article(id="4", title="Untagged story"),
    ]


@pytest.fixture
def browser(fake_client, articles):
    fake_client.articles = articles
    return ArticleBrowser(fake_client, debounce_seconds=0.01)


class TestListing:
    @pytest.mark.asyncio
    async def test_load(self, browser):
        loaded = await browser.load()

        assert [article.id for article in loaded] == ["1", "2", "3", "4"]
        assert browser.error is None

    @pytest.mark.asyncio
    async def test_categories_in_first_seen_order(self, browser):
        await browser.load()

        assert browser.categories() == [ALL_CATEGORIES, "weather", "business", "Weather"]

    @pytest.mark.asyncio
    async def test_filter_is_case_insensitive(self, browser):
        await browser.load()

        assert [a.id for a in browser.filter("weather")] == ["1", "3"]
        assert len(browser.filter("all")) == 4
        assert browser.filter("sports") == []

    @pytest.mark.asyncio
    async def test_find(self, browser):
        await browser.load()

        assert browser.find("2").title == "Sensex hits record high"
        assert browser.find("missing") is None

    @pytest.mark.asyncio
    async def test_load_failure_sets_error(self):
        client = AsyncMock()
        client.get_articles.side_effect = ChatTransportError(
            "Failed to fetch articles: Unable to connect to server. Please check your connection.",
            operation="get_articles",
        )
        browser = ArticleBrowser(client)

        with pytest.raises(ChatTransportError):
            await browser.load()

        assert browser.error.startswith("Failed to fetch articles")

    def test_preview_truncates(self):
        article = Article(title="t", summary="x" * 200)

        assert article.preview() == "x" * 150 + "..."
        assert Article(title="t").preview() == "No summary available"


class TestSearch:
    @pytest.mark.asyncio
    async def test_search(self, browser):
        results = await browser.search("  monsoon ")

        assert [a.id for a in results] == ["1"]
        assert browser.search_info == {"query": "monsoon"}

    @pytest.mark.asyncio
    async def test_blank_query_reloads_listing(self, browser):
        await browser.search("monsoon")

        results = await browser.search("   ")

        assert len(results) == 4
        assert browser.search_info is None

    @pytest.mark.asyncio
    async def test_debounce_keeps_only_latest_query(self, fake_client, articles):
        fake_client.articles = articles
        client = AsyncMock(wraps=fake_client)
        browser = ArticleBrowser(client, debounce_seconds=0.05)

        first = asyncio.create_task(browser.search_debounced("monsoon"))
        await asyncio.sleep(0)
        second = asyncio.create_task(browser.search_debounced("sensex"))

        assert await first is None
        assert [a.id for a in await second] == ["2"]
        client.search_articles.assert_awaited_once_with("sensex", None)

    @pytest.mark.asyncio
    async def test_cancel_pending_search(self, browser):
        task = asyncio.create_task(browser.search_debounced("monsoon"))
        await asyncio.sleep(0)

        browser.cancel_pending_search()

        assert await task is None
        assert browser.articles == []
