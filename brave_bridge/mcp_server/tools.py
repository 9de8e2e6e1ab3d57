"""The brave_web_search tool: schema, validation, upstream call and broadcast."""

import json
from typing import Any

import mcp.types as types

from brave_bridge.core.errors import ToolNotFoundError, UpstreamError
from brave_bridge.core.logger import logger
from brave_bridge.search.brave import BraveSearchClient
from brave_bridge.search.models import (
    DEFAULT_COUNT,
    MAX_COUNT,
    MIN_COUNT,
    QUERY_MAX_CHARS,
    QUERY_MAX_WORDS,
    SearchRequest,
)
from brave_bridge.stream.hub import BroadcastHub

BRAVE_WEB_SEARCH = "brave_web_search"

BRAVE_WEB_SEARCH_TOOL = types.Tool(
    name=BRAVE_WEB_SEARCH,
    description="Performs a web search using the Brave Search API with SSE support",
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": f"Search query (max {QUERY_MAX_CHARS} chars, {QUERY_MAX_WORDS} words)",
            },
            "count": {
                "type": "number",
                "description": f"Number of results ({MIN_COUNT}-{MAX_COUNT}, default {DEFAULT_COUNT})",
                "default": DEFAULT_COUNT,
            },
        },
        "required": ["query"],
    },
)


class SearchToolPipeline:
    """Runs tool calls against Brave and fans each outcome out to subscribers.

    Every call that passes validation broadcasts exactly one envelope:
    `result` on success, `error` on an upstream failure. Unknown tools and
    malformed arguments are rejected before Brave is contacted.
    """

    def __init__(self, client: BraveSearchClient, hub: BroadcastHub):
        self.client = client
        self.hub = hub

    def list_tools(self) -> list[types.Tool]:
        return [BRAVE_WEB_SEARCH_TOOL]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> list[types.TextContent]:
        if name != BRAVE_WEB_SEARCH:
            raise ToolNotFoundError(name)
        request = SearchRequest.model_validate(arguments or {})

        logger.tool_call(name, arguments or {})
        try:
            results = await self.client.search(request)
        except UpstreamError as e:
            self.hub.broadcast_error(str(e))
            logger.tool_result(name, 0, False, error_reason=str(e))
            raise

        self.hub.broadcast_result(results)
        text = json.dumps(results, indent=2, ensure_ascii=False)
        logger.tool_result(name, len(text), True)
        return [types.TextContent(type="text", text=text)]
