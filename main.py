import asyncio
import logging
import signal
import sys
from pathlib import Path

from storybook_mcp.browser import BrowserSession
from storybook_mcp.crawler.discovery_config import DiscoveryConfig
from storybook_mcp.crawler.storybook_probe import StorybookProbe
from storybook_mcp.errors import StorybookError
from storybook_mcp.server import create_server

logger = logging.getLogger("storybook_mcp")

FALLBACK_OUTPUT_DIRS = ["/tmp/screenshots", "./tmp-screenshots"]


def configure_logging(level: str) -> None:
    # stdout carries the MCP stdio transport, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr
    )


def build_discovery_config(config) -> DiscoveryConfig:
    """Discovery/capture tunables from the environment configuration."""
    return DiscoveryConfig(
        navigation_timeout=config.TIMEOUT,
        render_timeout=config.RENDER_TIMEOUT,
        store_timeout=config.STORE_TIMEOUT
    )


def prepare_output_dir(output_dir: str) -> str:
    """
    Creates the screenshot directory and checks it is writable.

    Falls back to a temporary location when the configured one is not permitted.

    :return: Absolute path of the usable directory
    """
    candidates = [output_dir] + FALLBACK_OUTPUT_DIRS
    last_error = None

    for candidate in candidates:
        path = Path(candidate).resolve()
        try:
            path.mkdir(parents=True, exist_ok=True)
            probe = path / ".write-test"
            probe.write_text("test")
            probe.unlink()
        except PermissionError as e:
            logger.warning(f"Output directory {path} is not writable: {e}")
            last_error = e
            continue

        if candidate != output_dir:
            logger.warning(f"Using fallback output directory: {path}")
        logger.info(f"Output directory ready: {path}")
        return str(path)

    raise RuntimeError(f"No writable output directory found (last error: {last_error})")


async def wait_for_storybook(probe: StorybookProbe, url: str, retries: int, delay: float) -> bool:
    """Runs the connectivity probe with a fixed delay between attempts."""
    for attempt in range(1, max(retries, 1) + 1):
        try:
            await probe.check(url)
            logger.info(f"Connected to Storybook at {url}")
            return True
        except StorybookError as e:
            logger.warning(f"Storybook check {attempt}/{retries} failed: {str(e)}")
            if attempt < retries:
                await asyncio.sleep(delay)
    return False


async def main():
    """Main entry point for the Storybook MCP server."""
    from config import config

    configure_logging(config.LOG_LEVEL)
    logger.info("Starting Storybook MCP server")
    logger.info(f"Configuration: {config.to_dict()}")

    discovery_config = build_discovery_config(config)
    output_dir = prepare_output_dir(config.OUTPUT_DIR)
    session = BrowserSession(headless=config.HEADLESS)
    server = create_server(session, config.STORYBOOK_URL, output_dir, discovery_config)

    # Cancel the server on termination so the browser is closed exactly once below
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, main_task.cancel)
        except (NotImplementedError, RuntimeError):
            pass

    try:
        probe = StorybookProbe(session, discovery_config=discovery_config)
        connected = await wait_for_storybook(
            probe, config.STORYBOOK_URL, config.CONNECTION_RETRIES, config.RETRY_DELAY
        )
        if not connected:
            if config.FAIL_ON_NO_STORYBOOK:
                logger.error(f"Storybook is not reachable at {config.STORYBOOK_URL}, exiting")
                return 1
            logger.warning("Storybook is not reachable yet, tools will retry on each call")

        logger.info("Storybook MCP Server running on stdio")
        await server.run_stdio_async()
    except asyncio.CancelledError:
        logger.info("Shutdown signal received")
    finally:
        await session.shutdown()

    logger.info("Server stopped")
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
