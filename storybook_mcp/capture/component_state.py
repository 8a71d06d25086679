import logging
from typing import AsyncIterator, List, Optional, Tuple, Union

from playwright.async_api import ElementHandle
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page

from storybook_mcp.capture.models import ComponentState
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.scripts import APPLY_STATE_SCRIPT
from storybook_mcp.errors import RenderingError

logger = logging.getLogger(__name__)

# Fallback tiers for the screenshot target, narrowest first
TIER_COMPONENT = "component"
TIER_ROOT = "root"
TIER_IFRAME = "iframe"
TIER_PAGE = "page"


async def apply_component_state(page: Page, frame: Optional[Frame], state: ComponentState,
                                discovery_config: Optional[DiscoveryConfig] = None) -> List[str]:
    """
    Simulates hover / focus / active on the rendered component.

    Marker classes are added to the component element, then native hover and
    focus are invoked so CSS and JS listeners both react.

    :param page: Playwright page instance
    :param frame: Preview iframe frame, or None for direct rendering
    :param state: Requested state
    :return: Marker classes that were added
    """
    if state.is_default:
        return []

    config = discovery_config or DiscoveryConfig()
    element = await find_component_element(page, frame, config)
    if element is None:
        logger.warning("Component element not found, state not applied")
        return []

    try:
        applied = await element.evaluate(APPLY_STATE_SCRIPT, {
            "hover": state.hover,
            "focus": state.focus,
            "active": state.active,
        })
        if state.hover:
            await element.hover(timeout=2000, force=True)
        if state.focus:
            await element.focus()

        await page.wait_for_timeout(config.settle_delay)
        logger.info(f"Applied component state: {', '.join(applied)}")
        return applied
    except PlaywrightError as e:
        logger.warning(f"Error applying component state: {str(e)}")
        return []


async def find_component_element(page: Page, frame: Optional[Frame],
                                 discovery_config: Optional[DiscoveryConfig] = None) -> Optional[ElementHandle]:
    """The narrowest element representing the component, inside the iframe when present."""
    config = discovery_config or DiscoveryConfig()
    target: Union[Page, Frame] = frame or page

    for selector in config.component_selectors:
        try:
            component = await target.query_selector(selector)
        except PlaywrightError as e:
            logger.debug(f"Selector {selector} failed: {str(e)}")
            continue
        if component is not None:
            logger.info(f"Found component with selector: {selector}")
            return component

    logger.warning("No component found with any selector")
    return None


async def _candidates(page: Page, frame: Optional[Frame],
                      config: DiscoveryConfig) -> AsyncIterator[Tuple[str, ElementHandle]]:
    component = await find_component_element(page, frame, config)
    if component is not None:
        yield TIER_COMPONENT, component

    iframe = await page.query_selector(config.iframe_selector)
    if iframe is None:
        return

    if frame is not None:
        root = await frame.query_selector(config.root_selector)
        if root is not None:
            yield TIER_ROOT, root

    yield TIER_IFRAME, iframe


async def screenshot_component(page: Page, frame: Optional[Frame],
                               discovery_config: Optional[DiscoveryConfig] = None) -> Tuple[bytes, str]:
    """
    Screenshots the component, falling back to the story root, the iframe and
    finally the visible page so there is always an image.

    :return: (PNG bytes, tier that produced them)
    :raises RenderingError: If even the page screenshot fails
    """
    config = discovery_config or DiscoveryConfig()

    async for tier, element in _candidates(page, frame, config):
        try:
            screenshot = await element.screenshot(type="png")
            logger.info(f"Captured screenshot of {tier}")
            return screenshot, tier
        except PlaywrightError as e:
            logger.warning(f"Screenshot of {tier} failed, falling back: {str(e)}")

    logger.warning("No component or iframe could be captured, taking page screenshot")
    try:
        return await page.screenshot(type="png", full_page=False), TIER_PAGE
    except PlaywrightError as e:
        raise RenderingError(f"No element could be captured, page screenshot failed: {str(e)}") from e
