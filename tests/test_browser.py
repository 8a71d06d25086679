"""Tests for the shared browser session."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storybook_mcp.browser import CONTAINER_ARGS, BrowserSession
from storybook_mcp.errors import BrowserLaunchError


@pytest.fixture
def playwright_stack():
    """Patched async_playwright returning a fake playwright/browser/context chain."""
    page = MagicMock()
    page.close = AsyncMock()
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    with patch("storybook_mcp.browser.async_playwright") as factory:
        factory.return_value.start = AsyncMock(return_value=playwright)
        yield {
            "factory": factory,
            "playwright": playwright,
            "browser": browser,
            "context": context,
            "page": page,
        }


class TestBrowserSession:
    """Tests for BrowserSession."""

    @pytest.mark.asyncio
    async def test_launches_once_for_concurrent_callers(self, playwright_stack):
        session = BrowserSession()

        contexts = await asyncio.gather(*(session.acquire() for _ in range(5)))

        assert all(c is playwright_stack["context"] for c in contexts)
        playwright_stack["playwright"].chromium.launch.assert_awaited_once_with(
            headless=True, args=CONTAINER_ARGS
        )
        playwright_stack["browser"].new_context.assert_awaited_once_with(ignore_https_errors=True)
        assert session.is_active

    @pytest.mark.asyncio
    async def test_page_is_closed_on_error(self, playwright_stack):
        session = BrowserSession()

        with pytest.raises(ValueError):
            async with session.page() as page:
                assert page is playwright_stack["page"]
                raise ValueError("boom")

        playwright_stack["page"].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_page_close_failure_does_not_mask_result(self, playwright_stack):
        playwright_stack["page"].close = AsyncMock(side_effect=RuntimeError("Target closed"))
        session = BrowserSession()

        async with session.page() as page:
            result = page

        assert result is playwright_stack["page"]

    @pytest.mark.asyncio
    async def test_launch_failure_can_be_retried(self, playwright_stack):
        launch = playwright_stack["playwright"].chromium.launch
        launch.side_effect = [RuntimeError("Executable doesn't exist"), playwright_stack["browser"]]
        session = BrowserSession(headless=False)

        with pytest.raises(BrowserLaunchError, match="Executable doesn't exist"):
            await session.acquire()
        assert not session.is_active
        playwright_stack["playwright"].stop.assert_awaited_once()

        assert await session.acquire() is playwright_stack["context"]
        assert launch.await_count == 2

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, playwright_stack):
        session = BrowserSession()
        await session.acquire()

        await session.shutdown()
        await session.shutdown()

        playwright_stack["browser"].close.assert_awaited_once()
        playwright_stack["playwright"].stop.assert_awaited_once()
        assert not session.is_active

    @pytest.mark.asyncio
    async def test_shutdown_without_launch(self, playwright_stack):
        await BrowserSession().shutdown()
        playwright_stack["factory"].assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_errors_are_ignored(self, playwright_stack):
        playwright_stack["browser"].close = AsyncMock(side_effect=RuntimeError("already closed"))
        session = BrowserSession()
        await session.acquire()

        await session.shutdown()

        playwright_stack["playwright"].stop.assert_awaited_once()
