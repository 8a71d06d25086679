"""Playwright stand-ins shared by the test modules."""

from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Smallest valid PNG: signature plus IHDR/IDAT/IEND chunks of a 1x1 image
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000"
    "000049454e44ae426082"
)


def make_response(status: int = 200, json_body: Any = None) -> MagicMock:
    """A navigation or API response with the given status and JSON body."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_body)
    response.dispose = AsyncMock()
    return response


def dispatch(mapping: Dict[str, Any], default: Any = None) -> Callable:
    """Side effect for ``evaluate`` that answers by script text."""
    def _evaluate(script, *args, **kwargs):
        value = mapping.get(script, default)
        if isinstance(value, BaseException):
            raise value
        return value
    return _evaluate


def selector_map(mapping: Dict[str, Any]) -> AsyncMock:
    """``query_selector`` stand-in answering by exact selector."""
    return AsyncMock(side_effect=lambda selector: mapping.get(selector))


def make_element(screenshot: Optional[bytes] = PNG_BYTES) -> AsyncMock:
    element = AsyncMock()
    element.screenshot = AsyncMock(return_value=screenshot)
    element.evaluate = AsyncMock(return_value=[])
    return element


def timeout_error(message: str = "Timeout 10000ms exceeded") -> PlaywrightTimeoutError:
    return PlaywrightTimeoutError(message)
