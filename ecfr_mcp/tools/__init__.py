"""Tool category modules for the eCFR MCP server.

This package contains MCP tools organized by functional categories:
- search_tools: Full-text search, date-range search and section content
- reference_tools: Titles, agencies, corrections and title versions
- structure_tools: Title hierarchy and full XML
- comparison_tools: Snapshot comparison and recent changes
"""

from .comparison_tools import register_comparison_tools
from .reference_tools import register_reference_tools
from .search_tools import register_search_tools
from .structure_tools import register_structure_tools

__all__ = [
    "register_search_tools",
    "register_reference_tools",
    "register_structure_tools",
    "register_comparison_tools",
]
