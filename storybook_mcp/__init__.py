"""
Storybook MCP server: lists Storybook components and captures screenshots of
component variants for AI clients.
"""

__version__ = "1.0.0"
