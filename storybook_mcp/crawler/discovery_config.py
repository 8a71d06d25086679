from typing import List
from pydantic import BaseModel

class DiscoveryConfig(BaseModel):
    """Selectors and timeouts for locating stories and rendered components."""

    # Paths that only a Storybook server answers with 200
    probe_endpoints: List[str] = [
        "/index.json",
        "/stories.json",
        "/iframe.html?id=example",
        "/?path=/story/example"
    ]

    # Global objects exposed by the different Storybook major versions
    store_globals: List[str] = [
        "__STORYBOOK_STORY_STORE__",
        "STORYBOOK_STORY_STORE",
        "__STORYBOOK_PREVIEW__",
        "__STORYBOOK_CLIENT_API__"
    ]

    # Sidebar entries for individual stories
    sidebar_story_selector: str = '[data-nodetype="story"], [data-item-type="story"]'
    explorer_tree_selector: str = "#storybook-explorer-tree"
    max_expand_iterations: int = 15

    # Storybook-specific settings
    content_iframe_id: str = "storybook-preview-iframe"
    root_selectors: List[str] = [
        "#storybook-root",
        "#root",
        '[data-story-block="true"]',
        ".sb-story",
        ".sb-main"
    ]

    # Timeouts in milliseconds
    navigation_timeout: int = 30000
    endpoint_timeout: int = 10000
    render_timeout: int = 10000
    store_timeout: int = 15000
    settle_delay: int = 300

    @property
    def root_selector(self) -> str:
        """Any of the story root containers."""
        return ", ".join(self.root_selectors[:3])

    @property
    def rendered_child_selector(self) -> str:
        """Any child of a story root, i.e. a rendered story."""
        return ", ".join(f"{selector} > *" for selector in self.root_selectors[:3])

    @property
    def component_selectors(self) -> List[str]:
        """First non-script/style child of each root, narrowest first."""
        return [f"{selector} > *:not(style):not(script)" for selector in self.root_selectors]

    @property
    def iframe_selector(self) -> str:
        return f'iframe[id="{self.content_iframe_id}"]'
