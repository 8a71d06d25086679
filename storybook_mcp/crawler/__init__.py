from .component import Component, Variant
from .component_crawler import ComponentCrawler
from .discovery_config import DiscoveryConfig
from .discovery_strategy import (
    DiscoveryStrategy,
    IndexJsonStrategy,
    StoriesJsonStrategy,
    StoryStoreStrategy,
    SidebarStrategy,
    group_stories
)
from .page_handler import PageHandler
from .storybook_probe import StorybookProbe

__all__ = [
    'Component',
    'Variant',
    'ComponentCrawler',
    'DiscoveryConfig',
    'DiscoveryStrategy',
    'IndexJsonStrategy',
    'StoriesJsonStrategy',
    'StoryStoreStrategy',
    'SidebarStrategy',
    'group_stories',
    'PageHandler',
    'StorybookProbe'
]
