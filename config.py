import os
from dotenv import load_dotenv
from typing import Dict, Any

# Load environment variables from .env file
load_dotenv()

class Config:
    """Central configuration management for the Storybook MCP server."""

    # Storybook target and screenshot output
    STORYBOOK_URL: str = os.getenv("STORYBOOK_URL", "http://localhost:6006")
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "./screenshots")

    # Playwright settings
    HEADLESS: bool = os.getenv("PLAYWRIGHT_HEADLESS", "true").lower() == "true"
    TIMEOUT: int = int(os.getenv("PLAYWRIGHT_TIMEOUT", "30000"))
    RENDER_TIMEOUT: int = int(os.getenv("STORY_RENDER_TIMEOUT", "10000"))
    STORE_TIMEOUT: int = int(os.getenv("STORY_STORE_TIMEOUT", "15000"))

    # Startup connectivity check
    CONNECTION_RETRIES: int = int(os.getenv("CONNECTION_RETRIES", "3"))
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "2"))
    FAIL_ON_NO_STORYBOOK: bool = os.getenv("FAIL_ON_NO_STORYBOOK", "false").lower() == "true"

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Return configuration as a dictionary for logging/debugging."""
        return {
            "STORYBOOK_URL": cls.STORYBOOK_URL,
            "OUTPUT_DIR": cls.OUTPUT_DIR,
            "HEADLESS": cls.HEADLESS,
            "TIMEOUT": cls.TIMEOUT,
            "RENDER_TIMEOUT": cls.RENDER_TIMEOUT,
            "STORE_TIMEOUT": cls.STORE_TIMEOUT,
            "CONNECTION_RETRIES": cls.CONNECTION_RETRIES,
            "RETRY_DELAY": cls.RETRY_DELAY,
            "FAIL_ON_NO_STORYBOOK": cls.FAIL_ON_NO_STORYBOOK,
            "LOG_LEVEL": cls.LOG_LEVEL
        }

# Initialize on import
config = Config()
