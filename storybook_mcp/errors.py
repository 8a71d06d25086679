"""
Error types raised by the Storybook discovery, probing and capture layers.

The MCP façade turns any of these into a ``{"success": False, ...}`` payload.
"""

import json
import traceback
from typing import Any


class StorybookError(Exception):
    """Base class for all errors surfaced to the MCP façade."""


class BrowserLaunchError(StorybookError):
    """The headless browser could not be started."""


class ConnectivityError(StorybookError):
    """The target URL is unreachable or does not look like Storybook."""


class DiscoveryError(StorybookError):
    """No story data could be extracted by any discovery strategy."""


class CaptureError(StorybookError):
    """A screenshot could not be produced."""


class NavigationError(CaptureError):
    """Loading a story URL returned an HTTP error or no response."""


class RenderingError(CaptureError):
    """No element could be resolved for the screenshot."""


class CaptureIOError(CaptureError):
    """The screenshot file could not be written."""


def format_error_details(error: Any) -> str:
    """Formats an error (or any object) into a string for error payloads."""
    if isinstance(error, BaseException):
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error}\n{stack}"
    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return str(error)
    return str(error)
