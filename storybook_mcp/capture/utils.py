import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from storybook_mcp.capture.models import ComponentState, Viewport

logger = logging.getLogger(__name__)

STORY_SEPARATOR = "--"
MAX_ARGS_LABEL = 50


def prepare_for_storybook_url(value: str) -> str:
    """
    Slugifies a display name the way Storybook builds story ids.

    "Primary Button" -> "primary-button". Applying it twice gives the same result.
    """
    if not value or not isinstance(value, str):
        logger.warning(f"Invalid variant string: {value!r}, using 'default'")
        return "default"

    prepared = re.sub(r"\s+", "-", value.strip().lower())
    return re.sub(r"[^\w-]", "", prepared)


def get_state_string(state: Optional[ComponentState]) -> str:
    """Filename label for a state, e.g. "hover-focus" or "default"."""
    if state is None or state.is_default:
        return "default"

    states = []
    if state.hover:
        states.append("hover")
    if state.focus:
        states.append("focus")
    if state.active:
        states.append("active")
    return "-".join(states)


def _serialize_arg(value: Any) -> str:
    # bool is checked before numbers since it is an int subclass
    if isinstance(value, bool):
        return "!true" if value else "!false"
    if value is None:
        return "!null"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        return f"!{json.dumps(value, separators=(',', ':'))}"
    return str(value)


def format_args_for_url(args: Optional[Dict[str, Any]]) -> str:
    """Story args as an ``&args=`` query fragment; empty when there are none."""
    if not args:
        return ""

    parts = [f"{key}:{_serialize_arg(value)}" for key, value in args.items()]
    return f"&args={';'.join(parts)}"


def resolve_story_id(component: str, variant: str) -> Tuple[str, str]:
    """
    Resolves the story id and Storybook path type for a capture request.

    :param component: Full story id (``kind--name``) or bare component id
    :param variant: Variant display name, appended as a slug to bare ids
    :return: (story id, "story" or "docs")
    """
    normalized = component.strip()
    if STORY_SEPARATOR in normalized:
        return normalized, "story"

    component_id = normalized.lower().replace("/", "-")
    if variant and variant.strip():
        return f"{component_id}{STORY_SEPARATOR}{prepare_for_storybook_url(variant)}", "story"

    # No variant: show the component's docs page
    return f"{component_id}{STORY_SEPARATOR}docs", "docs"


def build_component_url(base_url: str, story_id: str, path_type: str = "story",
                        args: Optional[Dict[str, Any]] = None) -> str:
    """Manager URL that opens ``story_id``, with optional args."""
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return f"{base}?path=/{path_type}/{quote(story_id, safe='')}{format_args_for_url(args)}"


def format_args_label(args: Optional[Dict[str, Any]]) -> str:
    """Short filename fragment describing args, capped in length."""
    if not args:
        return ""

    rendered = "_".join(f"{key}_{value}" for key, value in args.items())
    label = "-args_" + re.sub(r"[^a-zA-Z0-9_-]", "", rendered)
    return label[:MAX_ARGS_LABEL]


def build_screenshot_filename(story_id: str, state: ComponentState, viewport: Viewport,
                              args: Optional[Dict[str, Any]] = None,
                              timestamp: Optional[datetime] = None) -> str:
    """
    Filename for a capture:
    ``{story}{-args_...}_{state}_{W}x{H}_{timestamp}.png``.
    """
    sanitized_story_id = re.sub(r"[/\\]", "_", story_id)
    stamp = (timestamp or datetime.now()).strftime("%Y%m%dT%H%M%S%f")
    return (
        f"{sanitized_story_id}{format_args_label(args)}"
        f"_{get_state_string(state)}_{viewport.label()}_{stamp}.png"
    )
