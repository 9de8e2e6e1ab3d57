"""HTTP interface: SSE subscription stream and manual search trigger."""

import asyncio
from collections.abc import AsyncIterator
from typing import Protocol

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from brave_bridge import __version__
from brave_bridge.core.config import config
from brave_bridge.core.errors import UpstreamError
from brave_bridge.core.logger import logger
from brave_bridge.search.brave import BraveSearchClient
from brave_bridge.search.models import SearchRequest
from brave_bridge.stream.envelopes import connected_envelope, encode_frame
from brave_bridge.stream.registry import ConnectionRegistry, SubscriberConnection

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class DisconnectProbe(Protocol):
    async def is_disconnected(self) -> bool: ...


class EventStreamResponse(StreamingResponse):
    """StreamingResponse that always closes its body iterator.

    Starlette abandons the iterator when the client disconnects mid-send, which
    leaves the generator suspended with its cleanup unrun.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.body_iterator.aclose()


async def event_stream(
    connection: SubscriberConnection,
    registry: ConnectionRegistry,
    request: DisconnectProbe,
    poll_interval: float,
) -> AsyncIterator[str]:
    """Drain a subscriber's frames until the client or the server closes it."""
    reason = "transport closed"
    try:
        registry.add(connection)
        logger.subscriber_connected(connection.id, len(registry))
        while True:
            try:
                frame = await asyncio.wait_for(connection.next_frame(), timeout=poll_interval)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    reason = "client disconnected"
                    break
                continue
            if frame is None:
                reason = "server closed"
                break
            yield frame
    finally:
        connection.close()
        if registry.remove(connection):
            logger.subscriber_disconnected(connection.id, len(registry), reason)


def open_stream(
    registry: ConnectionRegistry,
    request: DisconnectProbe,
    poll_interval: float | None = None,
) -> EventStreamResponse:
    """Accept a subscriber: greet it privately, then register it for broadcasts.

    Registration happens when the body starts streaming, so a client that is
    gone before then never enters the registry.
    """
    connection = SubscriberConnection()
    connection.write(encode_frame(connected_envelope()))
    interval = poll_interval if poll_interval is not None else config.sse_poll_interval
    return EventStreamResponse(
        event_stream(connection, registry, request, interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


def create_app(
    registry: ConnectionRegistry,
    client: BraveSearchClient,
    *,
    poll_interval: float | None = None,
) -> FastAPI:
    """Create the HTTP application.

    Args:
        registry: Subscriber registry shared with the broadcast hub.
        client: Brave client used by the manual trigger route.
        poll_interval: Seconds between disconnect checks on idle streams.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Brave Search SSE",
        description="Live Brave Search results over Server-Sent Events",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Echoed inputs can hold lone surrogates that cannot be encoded as UTF-8
    @app.exception_handler(RequestValidationError)
    async def validation_failed(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(details)})

    @app.get("/sse")
    async def subscribe(request: Request) -> StreamingResponse:
        return open_stream(registry, request, poll_interval)

    # Results from this route go back to the caller only, never to subscribers.
    @app.post("/messages")
    async def trigger_search(body: SearchRequest) -> JSONResponse:
        try:
            results = await client.search(body)
        except UpstreamError as e:
            logger.warning(f"Manual search failed: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})
        return JSONResponse(content=results)

    return app
