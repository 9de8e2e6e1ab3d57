"""Brave Search bridge: one search tool served over MCP stdio and HTTP/SSE."""

__version__ = "0.1.0"
