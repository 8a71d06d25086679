"""Tests for component discovery across strategies."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from storybook_mcp.crawler.component_crawler import ComponentCrawler
from storybook_mcp.crawler.discovery_strategy import (
    IndexJsonStrategy,
    SidebarStrategy,
    StoriesJsonStrategy,
    StoryStoreStrategy,
)
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.errors import DiscoveryError
from tests.utils import make_response


def fake_strategy(name, result=None, error=None):
    strategy = MagicMock()
    strategy.name = name
    strategy.attempt = AsyncMock(return_value=result, side_effect=error)
    return strategy


class TestComponentCrawler:
    """Tests for ComponentCrawler."""

    def test_default_strategy_order(self, session, discovery_config):
        crawler = ComponentCrawler(session, discovery_config=discovery_config)
        assert [type(s) for s in crawler.strategies] == [
            IndexJsonStrategy, StoriesJsonStrategy, StoryStoreStrategy, SidebarStrategy
        ]

    @pytest.mark.asyncio
    async def test_button_with_two_stories(self, session, mock_page, discovery_config, index_json_v8):
        mock_page.request.get = AsyncMock(return_value=make_response(200, index_json_v8))
        crawler = ComponentCrawler(session, PageHandler(discovery_config))

        components = await crawler.discover("http://localhost:6006/")

        assert len(components) == 1
        button = components[0]
        assert button.name == "Button"
        assert [v.id for v in button.variants] == ["example-button--primary", "example-button--secondary"]
        mock_page.request.get.assert_called_once_with("http://localhost:6006/index.json", timeout=1000)
        mock_page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_falls_back_to_stories_json(self, session, mock_page, discovery_config, stories_json_v6):
        responses = {
            "http://sb/index.json": make_response(404),
            "http://sb/stories.json": make_response(200, stories_json_v6),
        }
        mock_page.request.get = AsyncMock(side_effect=lambda url, **kwargs: responses[url])
        crawler = ComponentCrawler(session, PageHandler(discovery_config))

        components = await crawler.discover("http://sb")

        assert [c.name for c in components] == ["Alert", "Button"]

    @pytest.mark.asyncio
    async def test_first_non_empty_result_wins(self, session):
        first = fake_strategy("first", result=None)
        second = fake_strategy("second", result=[{"id": "b--docs", "type": "docs", "componentId": "b"}])
        third = fake_strategy("third", result=[{"id": "c--one", "componentId": "c", "title": "C", "name": "One"}])
        fourth = fake_strategy("fourth")
        crawler = ComponentCrawler(session, strategies=[first, second, third, fourth])

        components = await crawler.discover("http://sb")

        assert [c.id for c in components] == ["c"]
        fourth.attempt.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_strategies_empty(self, session, mock_page):
        crawler = ComponentCrawler(session, strategies=[fake_strategy("a"), fake_strategy("b", result=[])])

        with pytest.raises(DiscoveryError, match="Could not find Storybook stories data"):
            await crawler.discover("http://sb")
        mock_page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_strategy_failure_propagates(self, session):
        broken = fake_strategy("broken", error=DiscoveryError("Invalid stories data: object"))
        later = fake_strategy("later", result=[{"id": "a--b", "componentId": "a"}])
        crawler = ComponentCrawler(session, strategies=[broken, later])

        with pytest.raises(DiscoveryError, match="Invalid stories data"):
            await crawler.discover("http://sb")
        later.attempt.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_wrapped(self, session, mock_page):
        crawler = ComponentCrawler(session, strategies=[fake_strategy("x", error=KeyError("entries"))])

        with pytest.raises(DiscoveryError, match="Failed to discover components at http://sb"):
            await crawler.discover("http://sb/")
        mock_page.close.assert_awaited_once()
