"""SSE subscriber registry, envelopes and broadcast hub."""

from brave_bridge.stream.hub import BroadcastHub
from brave_bridge.stream.registry import ConnectionRegistry, SubscriberConnection

__all__ = [
    "BroadcastHub",
    "ConnectionRegistry",
    "SubscriberConnection",
]
