"""Startup and shutdown ordering for the HTTP listener and the MCP channel."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import uvicorn
from mcp.server import Server

from brave_bridge.core.config import Config, config
from brave_bridge.core.errors import ConfigError
from brave_bridge.core.logger import logger
from brave_bridge.interfaces.http import create_app
from brave_bridge.mcp_server.server import build_mcp_server, run_stdio
from brave_bridge.mcp_server.tools import SearchToolPipeline
from brave_bridge.search.brave import BraveSearchClient
from brave_bridge.stream.hub import BroadcastHub
from brave_bridge.stream.registry import ConnectionRegistry

ChannelRunner = Callable[[Server], Awaitable[None]]


class _HttpServer(uvicorn.Server):
    """uvicorn server that leaves signals to BridgeServer.shutdown()."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class BridgeServer:
    """Owns both transports and the state they share.

    The registry, hub, pipeline and Brave client are built once here and
    handed to the MCP server and the HTTP app by reference.
    """

    def __init__(
        self,
        settings: Config | None = None,
        client: BraveSearchClient | None = None,
        channel_runner: ChannelRunner = run_stdio,
    ):
        self.settings = settings or config
        errors = self.settings.validate()
        if errors:
            raise ConfigError(errors)

        self.registry = ConnectionRegistry()
        self.hub = BroadcastHub(self.registry)
        self.client = client or BraveSearchClient(
            api_key=self.settings.brave_api_key,
            base_url=self.settings.brave_search_url,
            timeout=self.settings.brave_timeout_seconds,
        )
        self.pipeline = SearchToolPipeline(self.client, self.hub)
        self.mcp = build_mcp_server(self.pipeline)
        self.app = create_app(
            self.registry, self.client, poll_interval=self.settings.sse_poll_interval
        )
        self._channel_runner = channel_runner
        self._http: _HttpServer | None = None
        self._http_task: asyncio.Task | None = None
        self.channel_task: asyncio.Task | None = None
        self.channel_error: BaseException | None = None
        self.ready = asyncio.Event()
        self._shutdown_started = False

    @property
    def http_serving(self) -> bool:
        return (
            self._http is not None
            and self._http.started
            and self._http_task is not None
            and not self._http_task.done()
        )

    async def start(self) -> None:
        """Bind the HTTP listener, then open the MCP channel."""
        # log_config=None keeps uvicorn off stdout, which belongs to the MCP channel
        uv_config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
            access_log=False,
            log_level=self.settings.log_level.lower(),
        )
        self._http = _HttpServer(uv_config)
        self._http_task = asyncio.create_task(self._http.serve(), name="http-listener")
        while not self._http.started:
            if self._http_task.done():
                self._http_task.result()
                raise RuntimeError("HTTP listener stopped before accepting connections")
            await asyncio.sleep(0.05)
        logger.info(f"SSE server running on port {self.bound_port}")

        self.channel_task = asyncio.create_task(self._run_channel(), name="mcp-channel")
        self.ready.set()

    @property
    def bound_port(self) -> int:
        if self._http is not None:
            for server in getattr(self._http, "servers", []):
                for sock in server.sockets:
                    return sock.getsockname()[1]
        return self.settings.port

    async def _run_channel(self) -> None:
        logger.info("Brave Search MCP server running on stdio")
        try:
            await self._channel_runner(self.mcp)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.channel_error = e
            logger.error("MCP channel failed", exception=e)
            self.hub.broadcast_error(str(e) or type(e).__name__)

    async def shutdown(self) -> bool:
        """Close the MCP channel first, then drop subscribers and the listener.

        HTTP connections are not drained. Returns False when the channel did
        not finish closing within the grace period.
        """
        if self._shutdown_started:
            return True
        self._shutdown_started = True
        grace = self.settings.shutdown_grace_seconds

        channel_closed = True
        if self.channel_task is not None and not self.channel_task.done():
            self.channel_task.cancel()
            done, _ = await asyncio.wait({self.channel_task}, timeout=grace)
            channel_closed = bool(done)
        logger.info("MCP channel closed" if channel_closed else "MCP channel still closing")

        dropped = self.registry.close_all()
        if dropped:
            logger.info(f"Closed {dropped} SSE subscriber(s)")

        if self._http is not None and self._http_task is not None:
            self._http.should_exit = True
            self._http.force_exit = True
            await asyncio.wait({self._http_task}, timeout=grace)

        await self.client.close()
        self.ready.clear()
        return channel_closed
