import logging
from typing import Any, Dict, Optional, Tuple, Union

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.scripts import (
    DETECT_VERSION_SCRIPT,
    ROOT_HAS_CHILDREN_SCRIPT,
    ROOT_HAS_CONTENT_SCRIPT,
)
from storybook_mcp.errors import NavigationError

logger = logging.getLogger(__name__)

BLANK_URLS = ("", "about:blank")


class PageHandler:
    """Handles page interactions and navigation."""

    def __init__(self, discovery_config: Optional[DiscoveryConfig] = None):
        self.config = discovery_config or DiscoveryConfig()

    async def open_storybook(self, page: Page, url: str) -> Response:
        """
        Navigates to a Storybook URL and checks the response.

        :param page: Playwright page instance
        :param url: Absolute URL to load
        :return: The navigation response
        :raises NavigationError: If there is no response or the status is >= 400
        """
        logger.info(f"Navigating to: {url}")
        response = await page.goto(url, timeout=self.config.navigation_timeout, wait_until="load")

        if response is None:
            raise NavigationError(f"Failed to get response from {url}")
        if response.status >= 400:
            raise NavigationError(f"Failed to navigate to {url} (status: {response.status})")

        return response

    async def ensure_storybook(self, page: Page, url: str) -> None:
        """Loads the Storybook manager unless the page already shows something."""
        if page.url in BLANK_URLS:
            await self.open_storybook(page, url)

    async def fetch_json(self, page: Page, url: str) -> Optional[Any]:
        """
        Fetches a JSON document through the page's request context.

        :return: Parsed body on HTTP 200, otherwise None
        """
        response = await page.request.get(url, timeout=self.config.endpoint_timeout)
        try:
            if response.status != 200:
                logger.info(f"{url} returned status {response.status}")
                return None
            return await response.json()
        finally:
            await response.dispose()

    async def endpoint_status(self, page: Page, url: str) -> Optional[int]:
        """HTTP status of a GET on ``url``, or None when the request fails."""
        try:
            response = await page.request.get(url, timeout=self.config.endpoint_timeout)
        except PlaywrightError as e:
            logger.info(f"Request to {url} failed: {str(e)}")
            return None
        status = response.status
        await response.dispose()
        return status

    async def preview_frame(self, page: Page) -> Optional[Frame]:
        """The preview iframe's frame if it is already attached."""
        handle = await page.query_selector(self.config.iframe_selector)
        if handle is None:
            return None
        return await handle.content_frame()

    async def wait_for_story_render(self, page: Page) -> Tuple[Optional[Frame], bool]:
        """
        Waits for the story to render, inside the preview iframe when there is one.

        :param page: Playwright page instance
        :return: (preview frame or None for direct rendering, whether a rendered root was seen)
        """
        try:
            iframe = await page.wait_for_selector(
                self.config.iframe_selector,
                timeout=self.config.render_timeout,
                state="attached"
            )
        except PlaywrightTimeoutError:
            iframe = None

        if iframe is None:
            logger.info("No preview iframe found, assuming direct rendering")
            return None, await self.root_has_children(page)

        frame = await iframe.content_frame()
        if frame is None:
            logger.warning("Preview iframe has no content frame")
            return None, False

        try:
            await frame.wait_for_selector(
                self.config.rendered_child_selector,
                timeout=self.config.render_timeout
            )
            logger.info("Iframe content loaded and component found")
            return frame, True
        except PlaywrightTimeoutError:
            logger.warning("Timeout waiting for component in iframe")

        # Markup that is not a direct element child still counts as rendered
        has_content = await self._evaluate_flag(frame, ROOT_HAS_CONTENT_SCRIPT)
        if has_content:
            logger.info("Found content in iframe but not matching selectors")
        return frame, has_content

    async def root_has_children(self, target: Union[Page, Frame]) -> bool:
        return await self._evaluate_flag(target, ROOT_HAS_CHILDREN_SCRIPT)

    async def reload(self, page: Page) -> None:
        await page.reload(timeout=self.config.navigation_timeout, wait_until="load")
        await page.wait_for_timeout(2000)

    async def detect_storybook_version(self, page: Page) -> int:
        """
        Detects the Storybook major version from the meta tag, then from UI and API hints.

        :param page: Playwright page instance
        :return: Major version number, 6 when nothing more specific is found
        """
        try:
            soup = BeautifulSoup(await page.content(), "html.parser")
            version = self.extract_metadata(soup).get("storybook-version")
            if version:
                major = int(version.split(".")[0])
                logger.info(f"Detected Storybook version {version} from meta tag")
                return major
            return int(await page.evaluate(DETECT_VERSION_SCRIPT))
        except (PlaywrightError, ValueError, TypeError) as e:
            logger.warning(f"Error detecting Storybook version: {str(e)}")
            return 6

    def extract_metadata(self, soup: BeautifulSoup) -> Dict[str, str]:
        """Extracts metadata from the page."""
        metadata = {}
        meta_tags = soup.find_all('meta')
        for tag in meta_tags:
            name = tag.get('name') or tag.get('property') or tag.get('itemprop')
            if name:
                metadata[name] = tag.get('content', '')
        return metadata

    async def _evaluate_flag(self, target: Union[Page, Frame], script: str) -> bool:
        try:
            return bool(await target.evaluate(script, self.config.root_selector))
        except PlaywrightError as e:
            logger.warning(f"Could not inspect story root: {str(e)}")
            return False
