"""
Screenshot capture of a single Storybook story.

Navigates to the story, waits for it to render (inside the preview iframe or
directly on the page), applies the requested pseudo-state and writes a PNG of
the narrowest element that represents the component.
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles
from playwright.async_api import Page

from storybook_mcp.browser import BrowserSession
from storybook_mcp.capture.component_state import apply_component_state, screenshot_component
from storybook_mcp.capture.models import CaptureRequest, CaptureResult
from storybook_mcp.capture.utils import (
    build_component_url,
    build_screenshot_filename,
    resolve_story_id,
)
from storybook_mcp.capture.variant_selection import (
    select_variant_in_storybook,
    verify_variant_loaded,
)
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.errors import CaptureError, CaptureIOError, StorybookError

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 100


class CaptureEngine:
    """Captures screenshots of Storybook component variants."""

    def __init__(self, session: BrowserSession, storybook_url: str, output_dir: str,
                 page_handler: Optional[PageHandler] = None,
                 discovery_config: Optional[DiscoveryConfig] = None):
        """
        Args:
            session: Shared browser session; each capture opens its own page
            storybook_url: Storybook base URL
            output_dir: Existing, writable directory for PNG files
        """
        self.session = session
        self.storybook_url = storybook_url
        self.output_dir = Path(output_dir).resolve()
        self.page_handler = page_handler or PageHandler(discovery_config)
        self.config = self.page_handler.config

    async def capture(self, request: CaptureRequest) -> CaptureResult:
        """
        Captures one component variant in the requested state and viewport.

        Raises:
            NavigationError: The story URL returned an HTTP error or nothing
            CaptureIOError: The PNG could not be written
            CaptureError: Anything else went wrong during capture
        """
        story_id, path_type = resolve_story_id(request.component, request.variant)
        story_url = build_component_url(self.storybook_url, story_id, path_type, request.args)
        logger.info(
            f"Capturing {story_id} (component={request.component}, variant={request.variant}) "
            f"from {story_url}"
        )

        async with self.session.page() as page:
            try:
                return await self._capture_on_page(page, request, story_id, story_url)
            except StorybookError:
                raise
            except Exception as e:
                logger.error(f"Error capturing component {story_id}: {str(e)}")
                raise CaptureError(f"Failed to capture {story_id}: {str(e)}") from e

    async def _capture_on_page(self, page: Page, request: CaptureRequest,
                               story_id: str, story_url: str) -> CaptureResult:
        await page.set_viewport_size({
            "width": request.viewport.width,
            "height": request.viewport.height
        })

        await self.page_handler.open_storybook(page, story_url)
        await page.wait_for_timeout(1000)
        version = await self.page_handler.detect_storybook_version(page)
        logger.info(f"Detected Storybook version {version}")

        frame, rendered = await self.page_handler.wait_for_story_render(page)
        if not rendered:
            logger.warning("No rendered component found, reloading once")
            await self.page_handler.reload(page)
            frame, rendered = await self.page_handler.wait_for_story_render(page)
            if not rendered:
                logger.warning("Story root still empty after reload, continuing with fallbacks")

        variant_selected = await select_variant_in_storybook(page, request.variant, self.config)
        logger.info(f"Variant selection result: {'Success' if variant_selected else 'Not found/already selected'}")

        if variant_selected:
            # The click may have re-rendered the story in a new frame
            frame, _ = await self.page_handler.wait_for_story_render(page)

        if not await verify_variant_loaded(page, frame, request.variant, self.config):
            logger.warning("Could not verify variant was loaded, attempting to continue anyway")
        await page.wait_for_timeout(1000)

        await apply_component_state(page, frame, request.state, self.config)

        screenshot, tier = await screenshot_component(page, frame, self.config)
        screenshot_path = await self.save_screenshot(screenshot, story_id, request)

        return CaptureResult(
            component=request.component,
            variant=request.variant,
            state=request.state,
            viewport=request.viewport,
            screenshot_path=str(screenshot_path),
            screenshot_url=screenshot_path.as_uri(),
            success=True,
            story_id=story_id,
            story_url=story_url,
            storybook_version=version,
            capture_target=tier,
        )

    async def save_screenshot(self, screenshot: bytes, story_id: str, request: CaptureRequest) -> Path:
        """
        Writes the PNG under a unique name; an existing file is never overwritten.

        :return: Absolute path of the written file
        """
        filename = build_screenshot_filename(story_id, request.state, request.viewport, request.args)
        stem = filename[:-len(".png")]

        for attempt in range(MAX_NAME_ATTEMPTS):
            candidate = filename if attempt == 0 else f"{stem}-{attempt}.png"
            path = self.output_dir / candidate
            try:
                async with aiofiles.open(path, "xb") as f:
                    await f.write(screenshot)
            except FileExistsError:
                continue
            except OSError as e:
                raise CaptureIOError(f"Cannot write screenshot to {path}: {str(e)}") from e

            logger.info(f"Saved screenshot to: {path}")
            return path

        raise CaptureIOError(f"Could not find a free filename for {filename} in {self.output_dir}")
