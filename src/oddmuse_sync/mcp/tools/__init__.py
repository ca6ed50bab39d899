"""MCP tool handlers for Oddmuse wikis.

This package contains MCP tool implementations that wrap the SyncEngine
with async handlers and structured error responses.
"""

from .errors import build_error_response, translate_error
from .registry import ToolRegistry, ToolSpec
from .wiki_read import WIKI_READ_SPECS, WIKI_READ_TOOLS
from .wiki_write import WIKI_WRITE_SPECS, WIKI_WRITE_TOOLS

WIKI_TOOLS = WIKI_READ_TOOLS + WIKI_WRITE_TOOLS

ALL_SPECS: list[ToolSpec] = WIKI_READ_SPECS + WIKI_WRITE_SPECS

__all__ = [
    "build_error_response",
    "translate_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # ToolSpec lists
    "ALL_SPECS",
    "WIKI_READ_SPECS",
    "WIKI_WRITE_SPECS",
    # Tool lists
    "WIKI_TOOLS",
    "WIKI_READ_TOOLS",
    "WIKI_WRITE_TOOLS",
]
