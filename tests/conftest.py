"""Pytest configuration and shared fixtures."""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from storybook_mcp.browser import BrowserSession
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from tests.utils import PNG_BYTES, make_response, timeout_error


@pytest.fixture
def discovery_config() -> DiscoveryConfig:
    """Discovery settings with no real waiting."""
    return DiscoveryConfig(
        navigation_timeout=1000,
        endpoint_timeout=1000,
        render_timeout=10,
        store_timeout=0,
        settle_delay=0,
    )


@pytest.fixture
def mock_page() -> MagicMock:
    """A blank page: nothing answers, nothing renders."""
    page = MagicMock()
    page.url = "about:blank"
    page.goto = AsyncMock(return_value=make_response(200))
    page.request = MagicMock()
    page.request.get = AsyncMock(return_value=make_response(404))
    page.evaluate = AsyncMock(return_value=None)
    page.query_selector = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock(side_effect=timeout_error())
    page.wait_for_timeout = AsyncMock()
    page.content = AsyncMock(return_value="<html><head></head><body></body></html>")
    page.title = AsyncMock(return_value="")
    page.screenshot = AsyncMock(return_value=PNG_BYTES)
    page.set_viewport_size = AsyncMock()
    page.reload = AsyncMock()
    page.close = AsyncMock()
    page.frames = []
    return page


@pytest.fixture
def session(mock_page: MagicMock) -> BrowserSession:
    """A browser session whose pages are ``mock_page``."""
    browser_session = BrowserSession()
    browser_session.new_page = AsyncMock(return_value=mock_page)
    return browser_session


# ============================================================================
# Story index fixtures
# ============================================================================


@pytest.fixture
def index_json_v8() -> Dict[str, Any]:
    """Storybook 8 index.json: one Button component with a docs page and two stories."""
    return {
        "v": 5,
        "entries": {
            "example-button--docs": {
                "id": "example-button--docs",
                "title": "Example/Button",
                "name": "Docs",
                "type": "docs",
                "importPath": "./src/components/Button.stories.js",
            },
            "example-button--primary": {
                "id": "example-button--primary",
                "title": "Example/Button",
                "name": "Primary",
                "type": "story",
                "componentId": "example-button",
                "args": {"primary": True, "label": "Button"},
            },
            "example-button--secondary": {
                "id": "example-button--secondary",
                "title": "Example/Button",
                "name": "Secondary",
                "type": "story",
                "componentId": "example-button",
                "args": {"label": "Button"},
            },
        },
    }


@pytest.fixture
def stories_json_v6() -> Dict[str, Any]:
    """Storybook 6 stories.json: kind-based ids, args under parameters."""
    return {
        "v": 3,
        "stories": {
            "example-alert--info": {
                "id": "example-alert--info",
                "kind": "Example/Alert",
                "name": "Info",
                "parameters": {"args": {"type": "info"}},
            },
            "example-alert--error": {
                "id": "example-alert--error",
                "kind": "Example/Alert",
                "name": "Error",
                "parameters": {"args": {"type": "error"}},
            },
            "example-button--large": {
                "id": "example-button--large",
                "kind": "Example/Button",
                "name": "Large",
            },
        },
    }
