"""MCP server exposing the search pipeline over stdio."""

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from brave_bridge import __version__
from brave_bridge.core.errors import ToolNotFoundError, UpstreamError
from brave_bridge.mcp_server.tools import SearchToolPipeline

SERVER_NAME = "brave-search-mcp"


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "Invalid arguments: " + "; ".join(parts)


def build_mcp_server(pipeline: SearchToolPipeline) -> Server:
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return pipeline.list_tools()

    async def _call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            content = await pipeline.call_tool(req.params.name, req.params.arguments)
        except ToolNotFoundError as e:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(e))) from e
        except ValidationError as e:
            raise McpError(
                types.ErrorData(code=types.INVALID_PARAMS, message=_describe_validation_error(e))
            ) from e
        except UpstreamError as e:
            raise McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=str(e))) from e
        return types.ServerResult(types.CallToolResult(content=content))

    # Registered directly: the call_tool() decorator reports raised errors as
    # isError results, while callers here expect JSON-RPC error responses.
    server.request_handlers[types.CallToolRequest] = _call_tool
    return server


async def run_stdio(server: Server) -> None:
    """Serve the MCP protocol on stdin/stdout until the channel closes."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
