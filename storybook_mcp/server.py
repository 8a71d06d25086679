import json
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP, Image
from pydantic import ValidationError

from storybook_mcp.browser import BrowserSession
from storybook_mcp.capture.capture_engine import CaptureEngine
from storybook_mcp.capture.models import CaptureRequest, ComponentState, Viewport
from storybook_mcp.crawler.component_crawler import ComponentCrawler
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.page_handler import PageHandler
from storybook_mcp.errors import StorybookError, format_error_details

logger = logging.getLogger(__name__)

SERVER_NAME = "Storybook-MCP-Server"
COMPONENTS_RESOURCE_URI = "storybook://components"


def failure_payload(message: str, error: Any) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "details": format_error_details(error),
    }


class StorybookService:
    """Turns discovery and capture results into tool payloads."""

    def __init__(self, crawler: ComponentCrawler, engine: CaptureEngine, storybook_url: str):
        self.crawler = crawler
        self.engine = engine
        self.storybook_url = storybook_url

    async def list_components(self) -> Dict[str, Any]:
        try:
            components = await self.crawler.discover(self.storybook_url)
        except StorybookError as e:
            logger.error(f"Error fetching components: {str(e)}")
            return failure_payload("Failed to retrieve components", e)

        return {
            "success": True,
            "count": len(components),
            "components": [component.model_dump() for component in components],
        }

    async def capture(self, component: str, variant: Optional[str] = None,
                      state: Optional[Dict[str, Any]] = None,
                      viewport: Optional[Dict[str, Any]] = None,
                      args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            request = CaptureRequest(
                component=component,
                variant="Default" if variant is None else variant,
                state=ComponentState(**(state or {})),
                viewport=Viewport(**(viewport or {})),
                args=args,
            )
        except ValidationError as e:
            return failure_payload("Invalid capture request", e)

        try:
            result = await self.engine.capture(request)
        except StorybookError as e:
            logger.error(f"Error capturing component: {str(e)}")
            return failure_payload("Failed to capture component", e)

        return result.model_dump(by_alias=True)


def create_server(session: BrowserSession, storybook_url: str, output_dir: str,
                  discovery_config: Optional[DiscoveryConfig] = None) -> FastMCP:
    """Builds the MCP server with its tools and the component listing resource."""
    page_handler = PageHandler(discovery_config)
    service = StorybookService(
        crawler=ComponentCrawler(session, page_handler),
        engine=CaptureEngine(session, storybook_url, output_dir, page_handler),
        storybook_url=storybook_url,
    )
    mcp = FastMCP(SERVER_NAME)
    register_tools(mcp, service)
    return mcp


def register_tools(mcp: FastMCP, service: StorybookService) -> None:
    """Register service methods as MCP tools and resources via closures."""

    @mcp.tool(name="components", description="List all available Storybook components")
    async def components():
        logger.info("Components tool called")
        return await service.list_components()

    @mcp.tool(name="capture", description="Capture a screenshot of a Storybook component")
    async def capture(
        component: str,
        variant: str = "Default",
        state: Optional[ComponentState] = None,
        viewport: Optional[Viewport] = None,
        args: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            component: Component id (e.g. "button") or full story id (e.g. "button--primary")
            variant: Variant name, used when component is not a full story id
            state: Interaction state to simulate (hover, focus, active)
            viewport: Viewport dimensions for the screenshot, default 1024x768
            args: Story args to override through the URL
        """
        logger.info(f"Capture tool called for {component} / {variant}")
        payload = await service.capture(
            component=component,
            variant=variant,
            state=state.model_dump() if state else None,
            viewport=viewport.model_dump() if viewport else None,
            args=args,
        )
        if not payload["success"]:
            return payload
        return [payload, Image(path=payload["screenshotPath"])]

    @mcp.resource(
        COMPONENTS_RESOURCE_URI,
        name="components",
        description="All Storybook components and their variants",
        mime_type="application/json",
    )
    async def components_resource() -> str:
        return json.dumps(await service.list_components(), indent=2)
