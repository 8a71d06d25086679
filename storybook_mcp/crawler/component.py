from pydantic import BaseModel, Field
from typing import List, Dict, Any

class Variant(BaseModel):
    """A single story of a component."""
    id: str
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)

class Component(BaseModel):
    """Represents a Storybook component and its stories."""
    id: str
    name: str
    path: str
    variants: List[Variant] = Field(default_factory=list)
