import json
import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page

from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.scripts import VERIFY_VARIANT_SCRIPT

logger = logging.getLogger(__name__)

CONTROLS_TAB_SELECTORS = [
    'button:has-text("Controls")',
    '[role="tab"]:has-text("Controls")',
    '[data-nodeid="controls"]',
]


def sidebar_selectors(variant: str) -> List[str]:
    """Sidebar and general selectors for a variant, most specific first."""
    slug = variant.lower()
    text = json.dumps(variant)
    return [
        f'.sidebar-item[data-nodeid*={json.dumps(slug)}]',
        f'.sidebar-item[data-item-id*={json.dumps(slug)}]',
        f'[data-selected="false"]:has-text({text})',
        f'button:has-text({text})',
        f'text={text}',
        f'[data-nodeid*={json.dumps(slug)}]',
        f'[data-item-id*={json.dumps(slug)}]',
    ]


def controls_selectors(variant: str) -> List[str]:
    """Controls-panel inputs that may switch to a variant."""
    text = json.dumps(variant)
    return [
        f'[role="radio"]:has-text({text})',
        f'label:has-text({text})',
        f'button:has-text({text})',
    ]


async def select_variant_in_storybook(page: Page, variant: str,
                                      discovery_config: Optional[DiscoveryConfig] = None) -> bool:
    """
    Clicks the variant in the Storybook UI when URL navigation alone did not switch it.

    Never raises: failing to find a matching control just means the URL is trusted.

    :param page: Playwright page instance
    :param variant: Variant display name
    :return: Whether a matching control was clicked
    """
    config = discovery_config or DiscoveryConfig()
    try:
        logger.info(f"Attempting to select variant: {variant!r}")
        iframe = await page.query_selector(config.iframe_selector)

        if iframe is None:
            for selector in sidebar_selectors(variant):
                if await _click_first(page, selector):
                    return True
            logger.info(f"Could not find variant {variant!r} in sidebar")
        else:
            for tab_selector in CONTROLS_TAB_SELECTORS:
                if not await _click_first(page, tab_selector, settle=300):
                    continue
                for selector in controls_selectors(variant):
                    if await _click_first(page, selector):
                        return True

        logger.info(f"Could not explicitly select variant {variant!r} through UI, continuing anyway")
        return False
    except PlaywrightError as e:
        logger.warning(f"Error selecting variant: {str(e)}")
        return False


async def verify_variant_loaded(page: Page, frame: Optional[Frame], variant: str,
                                discovery_config: Optional[DiscoveryConfig] = None) -> bool:
    """
    Looks for textual or attribute evidence of the variant under the story root.

    Only a best-effort signal: sibling text can match and visually distinct
    variants may carry no text at all.

    :return: True when there is evidence of the variant or at least a rendered component
    """
    config = discovery_config or DiscoveryConfig()
    target = frame or page
    try:
        outcome = await target.evaluate(
            VERIFY_VARIANT_SCRIPT,
            {"selector": config.root_selector, "variant": variant}
        )
    except PlaywrightError as e:
        logger.warning(f"Error verifying variant: {str(e)}")
        return False

    if outcome == "evidence":
        logger.info(f"Found evidence that variant {variant!r} is loaded")
        return True
    if outcome == "rendered":
        logger.info(f"Found component but couldn't verify variant {variant!r} specifically")
        return True

    logger.warning(f"No component found - variant {variant!r} may not be loaded")
    return False


async def _click_first(page: Page, selector: str, settle: int = 500) -> bool:
    logger.debug(f"Trying selector: {selector}")
    element = await page.query_selector(selector)
    if element is None:
        return False

    logger.debug(f"Found element with selector: {selector}")
    try:
        await element.click(timeout=2000)
    except PlaywrightError as e:
        logger.debug(f"Click on {selector} failed: {str(e)}")
        return False
    await page.wait_for_timeout(settle)
    return True
