"""
Capture module: renders a Storybook story in a given state and viewport and
stores a PNG of the component.
"""

from .capture_engine import CaptureEngine
from .models import CaptureRequest, CaptureResult, ComponentState, Viewport
from .utils import prepare_for_storybook_url, get_state_string, format_args_for_url

__all__ = [
    "CaptureEngine",
    "CaptureRequest",
    "CaptureResult",
    "ComponentState",
    "Viewport",
    "prepare_for_storybook_url",
    "get_state_string",
    "format_args_for_url"
]
