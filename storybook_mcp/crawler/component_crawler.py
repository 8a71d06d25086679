import logging
from typing import List, Optional

from playwright.async_api import Page

from storybook_mcp.browser import BrowserSession
from storybook_mcp.crawler.component import Component
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.discovery_strategy import (
    DiscoveryStrategy,
    default_strategies,
    group_stories,
)
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.errors import DiscoveryError, StorybookError

logger = logging.getLogger(__name__)


class ComponentCrawler:
    """Discovers the components and variants of a Storybook instance."""

    def __init__(self, session: BrowserSession,
                 page_handler: Optional[PageHandler] = None,
                 strategies: Optional[List[DiscoveryStrategy]] = None,
                 discovery_config: Optional[DiscoveryConfig] = None):
        self.session = session
        self.page_handler = page_handler or PageHandler(discovery_config)
        self.strategies = strategies if strategies is not None else default_strategies(self.page_handler)

    async def discover(self, base_url: str) -> List[Component]:
        """
        Lists the components of the Storybook at ``base_url``.

        :param base_url: Storybook base URL
        :return: Components with their variants, in discovery order
        :raises DiscoveryError: If no strategy could read any story data
        """
        base_url = base_url.rstrip("/")
        logger.info(f"Discovering components at {base_url}")

        async with self.session.page() as page:
            try:
                return await self.discover_components(page, base_url)
            except StorybookError:
                raise
            except Exception as e:
                logger.error(f"Error retrieving components: {str(e)}")
                raise DiscoveryError(f"Failed to discover components at {base_url}: {str(e)}") from e

    async def discover_components(self, page: Page, base_url: str) -> List[Component]:
        """Runs the strategies in order and groups the first non-empty result."""
        for strategy in self.strategies:
            logger.info(f"Trying discovery strategy: {strategy.name}")
            stories = await strategy.attempt(page, base_url)
            if not stories:
                continue

            components = group_stories(stories)
            if not components:
                logger.info(f"Strategy {strategy.name} returned no usable stories")
                continue

            variant_count = sum(len(component.variants) for component in components)
            logger.info(
                f"Discovered {len(components)} components ({variant_count} variants) "
                f"via {strategy.name}"
            )
            return components

        raise DiscoveryError(f"Could not find Storybook stories data at {base_url}")
