import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from storybook_mcp.browser import BrowserSession
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.crawler.scripts import LIST_STORY_GLOBALS_SCRIPT
from storybook_mcp.errors import ConnectivityError, NavigationError

logger = logging.getLogger(__name__)

# Class/id markers Storybook puts on its own chrome
STORYBOOK_DOM_SELECTORS = [
    '[class*="storybook"]',
    '[id^="storybook-"]',
    "iframe#storybook-preview-iframe",
    "iframe#canvas",
]


class StorybookProbe:
    """Decides whether a URL serves a Storybook instance.

    No single signal works across Storybook 6, 7 and 8, so the probe walks
    through endpoint, API and UI evidence and stops at the first hit.
    """

    def __init__(self, session: BrowserSession,
                 page_handler: Optional[PageHandler] = None,
                 discovery_config: Optional[DiscoveryConfig] = None):
        self.session = session
        self.page_handler = page_handler or PageHandler(discovery_config)
        self.config = self.page_handler.config

    async def check(self, base_url: str) -> None:
        """
        Checks that ``base_url`` points at a running Storybook.

        :param base_url: Storybook base URL
        :raises ConnectivityError: If the URL is unreachable or no evidence was found
        """
        base_url = base_url.rstrip("/")
        logger.info(f"Checking connection to Storybook at {base_url}")

        async with self.session.page() as page:
            try:
                evidence = await self.gather_evidence(page, base_url)
            except ConnectivityError:
                raise
            except Exception as e:
                raise ConnectivityError(f"Failed to connect to Storybook at {base_url}: {str(e)}") from e

        if evidence is None:
            raise ConnectivityError(
                f"URL {base_url} doesn't appear to be a valid Storybook instance. "
                "No Storybook APIs or UI elements detected."
            )
        logger.info(f"Storybook detected at {base_url} ({evidence})")

    async def gather_evidence(self, page: Page, base_url: str) -> Optional[str]:
        """Returns a description of the first Storybook signal found, or None."""
        endpoint = await self.check_endpoints(page, base_url)
        if endpoint:
            return f"endpoint {endpoint}"

        try:
            await self.page_handler.open_storybook(page, base_url)
        except NavigationError as e:
            raise ConnectivityError(f"Failed to connect to Storybook at {base_url}: {str(e)}") from e

        apis = await self.detect_story_globals(page)
        if apis:
            return f"globals {', '.join(apis)}"

        html = await page.content()
        title = await page.title()
        if self.has_storybook_text(title, html):
            return "page text"
        if self.has_storybook_markup(html):
            return "page markup"
        return None

    async def check_endpoints(self, page: Page, base_url: str) -> Optional[str]:
        """First Storybook-specific endpoint answering HTTP 200."""
        for endpoint in self.config.probe_endpoints:
            status = await self.page_handler.endpoint_status(page, f"{base_url}{endpoint}")
            logger.debug(f"Endpoint {endpoint} returned status: {status}")
            if status == 200:
                return endpoint
        return None

    async def detect_story_globals(self, page: Page) -> List[str]:
        """Story store globals on the page or inside any of its iframes."""
        found: List[str] = []
        for frame in page.frames:
            try:
                names = await frame.evaluate(LIST_STORY_GLOBALS_SCRIPT, self.config.store_globals)
            except PlaywrightError as e:
                logger.debug(f"Error evaluating frame {frame.url}: {str(e)}")
                continue
            found.extend(name for name in names or [] if name not in found)
        return found

    @staticmethod
    def has_storybook_text(title: str, html: str) -> bool:
        if "storybook" in (title or "").lower():
            return True
        soup = BeautifulSoup(html or "", "html.parser")
        return "storybook" in soup.get_text(" ").lower()

    @staticmethod
    def has_storybook_markup(html: str) -> bool:
        soup = BeautifulSoup(html or "", "html.parser")
        return any(soup.select(selector) for selector in STORYBOOK_DOM_SELECTORS)
