"""
Data models for screenshot capture requests and results.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ComponentState(BaseModel):
    """Interaction state to simulate; all False means the default state."""
    hover: bool = False
    focus: bool = False
    active: bool = False

    @property
    def is_default(self) -> bool:
        return not (self.hover or self.focus or self.active)


class Viewport(BaseModel):
    """Viewport dimensions in pixels."""
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=768, gt=0)

    def label(self) -> str:
        return f"{self.width}x{self.height}"


class CaptureRequest(BaseModel):
    """A component variant to render and capture."""
    component: str = Field(min_length=1)
    variant: str = "Default"
    state: ComponentState = Field(default_factory=ComponentState)
    viewport: Viewport = Field(default_factory=Viewport)
    args: Optional[Dict[str, Any]] = None


class CaptureResult(BaseModel):
    """Where a screenshot was written and how it was produced."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    component: str
    variant: str
    state: ComponentState
    viewport: Viewport
    screenshot_path: str
    screenshot_url: str
    success: bool = True
    story_id: str
    story_url: str
    storybook_version: Optional[int] = None
    capture_target: str
