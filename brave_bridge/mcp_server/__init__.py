"""MCP (stdio) transport for the search tool."""

from brave_bridge.mcp_server.server import SERVER_NAME, build_mcp_server, run_stdio
from brave_bridge.mcp_server.tools import BRAVE_WEB_SEARCH, SearchToolPipeline

__all__ = [
    "BRAVE_WEB_SEARCH",
    "SERVER_NAME",
    "SearchToolPipeline",
    "build_mcp_server",
    "run_stdio",
]
