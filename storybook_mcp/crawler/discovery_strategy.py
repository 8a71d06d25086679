import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from storybook_mcp.crawler.component import Component, Variant
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.crawler.scripts import (
    EXTRACT_STORIES_SCRIPT,
    HAS_STORY_STORE_SCRIPT,
    SIDEBAR_STORIES_SCRIPT,
)
from storybook_mcp.errors import DiscoveryError, NavigationError

logger = logging.getLogger(__name__)

StoryRecord = Dict[str, Any]


class DiscoveryStrategy(ABC):
    """One way of reading the story list out of a Storybook instance.

    ``attempt`` returns raw story records, or None when this strategy found
    nothing and the next one should be tried.
    """

    name = "base"

    def __init__(self, page_handler: Optional[PageHandler] = None,
                 discovery_config: Optional[DiscoveryConfig] = None):
        self.config = discovery_config or (page_handler.config if page_handler else DiscoveryConfig())
        self.page_handler = page_handler or PageHandler(self.config)

    @abstractmethod
    async def attempt(self, page: Page, base_url: str) -> Optional[List[StoryRecord]]:
        """Read story records for ``base_url`` using ``page``."""
        pass

    async def _open(self, page: Page, base_url: str) -> None:
        try:
            await self.page_handler.ensure_storybook(page, base_url)
        except NavigationError as e:
            raise DiscoveryError(str(e)) from e


class IndexJsonStrategy(DiscoveryStrategy):
    """Reads the static ``index.json`` story index (Storybook 7+)."""

    name = "index.json"

    async def attempt(self, page: Page, base_url: str) -> Optional[List[StoryRecord]]:
        url = f"{base_url}/index.json"
        try:
            data = await self.page_handler.fetch_json(page, url)
        except (PlaywrightError, ValueError) as e:
            logger.info(f"Could not read {url}: {str(e)}")
            return None

        if not isinstance(data, dict):
            return None
        entries = data.get("entries") or data.get("stories")
        if not isinstance(entries, dict):
            return None

        records = []
        for story_id, entry in entries.items():
            if not isinstance(entry, dict):
                records.append(entry)
                continue
            record = dict(entry)
            record.setdefault("id", story_id)
            record["componentId"] = (
                entry.get("componentId") or entry.get("title") or story_id.split("--")[0]
            )
            records.append(record)
        return records


class StoriesJsonStrategy(DiscoveryStrategy):
    """Reads the legacy ``stories.json`` index (Storybook 6)."""

    name = "stories.json"

    async def attempt(self, page: Page, base_url: str) -> Optional[List[StoryRecord]]:
        url = f"{base_url}/stories.json"
        try:
            data = await self.page_handler.fetch_json(page, url)
        except (PlaywrightError, ValueError) as e:
            logger.info(f"Could not read {url}: {str(e)}")
            return None

        if not isinstance(data, dict) or not isinstance(data.get("stories"), dict):
            return None

        records = []
        for story_id, story in data["stories"].items():
            if isinstance(story, dict):
                story = dict(story)
                story.setdefault("id", story_id)
            records.append(story)
        return records


class StoryStoreStrategy(DiscoveryStrategy):
    """Reads stories from the in-page story store of a running Storybook."""

    name = "story store"
    poll_interval = 500

    async def attempt(self, page: Page, base_url: str) -> Optional[List[StoryRecord]]:
        await self._open(page, base_url)

        target = await self._wait_for_store(page)
        if target is None:
            logger.info(f"No story store appeared within {self.config.store_timeout}ms")
            return None

        result = await target.evaluate(EXTRACT_STORIES_SCRIPT)
        if result is None:
            logger.info("Story store present but exposes no known API")
            return None

        stories = result.get("stories")
        if not isinstance(stories, list):
            raise DiscoveryError(f"Invalid stories data: {stories}")

        logger.info(f"Read {len(stories)} stories via {result.get('source')}")
        return stories

    async def _wait_for_store(self, page: Page) -> Optional[Union[Page, Frame]]:
        """Polls the manager page and the preview iframe for a store global."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.store_timeout / 1000

        while True:
            targets: List[Union[Page, Frame]] = [page]
            frame = await self.page_handler.preview_frame(page)
            if frame is not None:
                targets.append(frame)

            for target in targets:
                if await self._has_store(target):
                    return target

            if loop.time() >= deadline:
                return None
            await page.wait_for_timeout(self.poll_interval)

    async def _has_store(self, target: Union[Page, Frame]) -> bool:
        try:
            return bool(await target.evaluate(HAS_STORY_STORE_SCRIPT, self.config.store_globals))
        except PlaywrightError as e:
            logger.debug(f"Store check failed: {str(e)}")
            return False


class SidebarStrategy(DiscoveryStrategy):
    """Scrapes story nodes from the expanded sidebar explorer tree."""

    name = "sidebar"

    async def attempt(self, page: Page, base_url: str) -> Optional[List[StoryRecord]]:
        await self._open(page, base_url)

        tree = page.locator(self.config.explorer_tree_selector)
        try:
            await tree.wait_for(state="visible", timeout=self.config.render_timeout)
            await self._expand_all_hierarchies(tree, page)
        except PlaywrightTimeoutError:
            logger.warning("Explorer tree not visible, scraping sidebar as rendered")

        items = await page.evaluate(SIDEBAR_STORIES_SCRIPT, self.config.sidebar_story_selector)
        if not items:
            return None

        records = []
        for item in items:
            story_id = item.get("id") or ""
            parent_id = item.get("parentId") or ""
            title = item.get("parentName") or parent_id
            records.append({
                "id": story_id,
                "kind": title,
                "title": title,
                "name": item.get("text") or story_id,
                "componentId": parent_id or story_id.split("--")[0],
            })
        logger.info(f"Scraped {len(records)} stories from the sidebar")
        return records

    async def _expand_all_hierarchies(self, tree: Locator, page: Page) -> None:
        """Expands collapsed groups and components until nothing is left to expand."""
        collapsed = (
            '[data-nodetype="group"] button[aria-expanded="false"], '
            '[data-nodetype="component"] button[aria-expanded="false"]'
        )

        for iteration in range(1, self.config.max_expand_iterations + 1):
            expandable = await tree.locator(collapsed).all()
            if not expandable:
                logger.debug(f"No more expandable elements after {iteration} iterations")
                return

            expanded_count = 0
            for item in expandable:
                try:
                    await item.click(timeout=1000)
                    expanded_count += 1
                    await page.wait_for_timeout(150)
                except PlaywrightError as e:
                    logger.debug(f"Could not expand sidebar node: {str(e)}")

            logger.debug(f"Expanded {expanded_count}/{len(expandable)} elements in iteration {iteration}")
            if expanded_count == 0:
                return
            await page.wait_for_timeout(500)

        logger.warning("Reached maximum iterations for hierarchy expansion")


def default_strategies(page_handler: PageHandler) -> List[DiscoveryStrategy]:
    """Strategies in order of preference."""
    return [
        IndexJsonStrategy(page_handler),
        StoriesJsonStrategy(page_handler),
        StoryStoreStrategy(page_handler),
        SidebarStrategy(page_handler),
    ]


def group_stories(stories: List[Any]) -> List[Component]:
    """
    Groups raw story records into components.

    Records that are not objects, are not of type "story", or have no derivable
    component id are skipped. Repeated records accumulate as extra variants.
    """
    components: Dict[str, Component] = {}

    for story in stories:
        if not isinstance(story, dict):
            continue
        if story.get("type") and story.get("type") != "story":
            continue

        component_id = story.get("componentId") or story.get("kind") or story.get("title")
        if not component_id:
            continue

        title = story.get("title") or story.get("kind") or ""
        if component_id not in components:
            components[component_id] = Component(
                id=component_id,
                name=title.split("/")[-1] or "Unknown",
                path=title or component_id,
            )

        parameters = story.get("parameters") if isinstance(story.get("parameters"), dict) else {}
        args = parameters.get("args") or story.get("args") or {}
        story_id = str(story.get("id") or "")
        components[component_id].variants.append(Variant(
            id=story_id,
            name=story.get("name") or story_id,
            args=args if isinstance(args, dict) else {},
        ))

    return list(components.values())
