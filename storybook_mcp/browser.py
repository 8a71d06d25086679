import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from storybook_mcp.errors import BrowserLaunchError

logger = logging.getLogger(__name__)

# Flags for running Chromium inside containers
CONTAINER_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class BrowserSession:
    """Owns one lazily launched browser and a single shared browsing context.

    Every logical operation opens its own page from the shared context and
    closes it when done, so concurrent requests never share page state.
    """

    def __init__(self, headless: bool = True, launch_args: Optional[List[str]] = None):
        self.headless = headless
        self.launch_args = launch_args if launch_args is not None else list(CONTAINER_ARGS)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self._context is not None

    async def acquire(self) -> BrowserContext:
        """Returns the shared context, launching the browser on first use."""
        if self._context is not None:
            return self._context

        async with self._lock:
            if self._context is not None:
                return self._context

            logger.info(f"Launching Chromium (headless={self.headless})")
            playwright = None
            browser = None
            try:
                playwright = await async_playwright().start()
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    args=self.launch_args
                )
                context = await browser.new_context(ignore_https_errors=True)
            except Exception as e:
                logger.error(f"Browser launch failed: {str(e)}")
                if browser is not None:
                    await self._quietly(browser.close())
                if playwright is not None:
                    await self._quietly(playwright.stop())
                raise BrowserLaunchError(f"Failed to launch browser: {str(e)}") from e

            self._playwright = playwright
            self._browser = browser
            self._context = context
            return context

    async def new_page(self) -> Page:
        """Opens an isolated page; the caller must close it."""
        context = await self.acquire()
        return await context.new_page()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Yields a fresh page that is closed on every exit path."""
        page = await self.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as e:
                logger.debug(f"Page close failed: {str(e)}")

    async def shutdown(self) -> None:
        """Closes the browser and clears the session. Safe to call repeatedly."""
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._context = None
        self._playwright = None

        if browser is None and playwright is None:
            return

        logger.info("Shutting down browser session")
        if browser is not None:
            await self._quietly(browser.close())
        if playwright is not None:
            await self._quietly(playwright.stop())

    @staticmethod
    async def _quietly(awaitable) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.warning(f"Ignoring error during browser cleanup: {str(e)}")
