"""Live SSE subscribers and the registry that owns them."""

import asyncio
import uuid
from collections.abc import Callable

from brave_bridge.core.errors import SubscriberClosedError


class SubscriberConnection:
    """One open event-stream client.

    Frames written here are queued and drained by the HTTP response that
    owns the stream. Once closed, every write raises SubscriberClosedError.
    """

    def __init__(self):
        self.id = uuid.uuid4().hex[:8]
        self.closed = False
        self._frames: asyncio.Queue[str | None] = asyncio.Queue()

    def write(self, frame: str) -> None:
        if self.closed:
            raise SubscriberClosedError(f"subscriber {self.id} is closed")
        self._frames.put_nowait(frame)

    async def next_frame(self) -> str | None:
        """Wait for the next frame; None once the connection is closed."""
        if self.closed and self._frames.empty():
            return None
        return await self._frames.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a reader blocked in next_frame()
        self._frames.put_nowait(None)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"SubscriberConnection({self.id}, {state})"


class ConnectionRegistry:
    """The set of currently open subscribers.

    All access happens on the event loop, so no lock is held. Iteration runs
    over a snapshot: a callback may remove connections, including the one it
    was given, without disturbing the walk.
    """

    def __init__(self):
        self._connections: set[SubscriberConnection] = set()

    def add(self, connection: SubscriberConnection) -> None:
        self._connections.add(connection)

    def remove(self, connection: SubscriberConnection) -> bool:
        """Remove a connection. Returns False if it was already gone."""
        if connection not in self._connections:
            return False
        self._connections.discard(connection)
        return True

    def for_each(self, fn: Callable[[SubscriberConnection], None]) -> None:
        for connection in list(self._connections):
            if connection in self._connections:
                fn(connection)

    def close_all(self) -> int:
        connections = list(self._connections)
        self._connections.clear()
        for connection in connections:
            connection.close()
        return len(connections)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    def __len__(self) -> int:
        return len(self._connections)
