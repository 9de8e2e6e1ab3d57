"""Best-effort fan-out of envelopes to every registered subscriber."""

from brave_bridge.core.logger import logger
from brave_bridge.search.models import SearchResult
from brave_bridge.stream.envelopes import (
    Envelope,
    encode_frame,
    error_envelope,
    result_envelope,
)
from brave_bridge.stream.registry import ConnectionRegistry, SubscriberConnection


class BroadcastHub:
    """Writes one serialized envelope to every live subscriber.

    A failed write evicts that subscriber and delivery to the rest carries
    on. Nothing is acknowledged, retried or ordered across calls.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def broadcast(self, envelope: Envelope) -> int:
        """Deliver an envelope; returns how many subscribers accepted it."""
        frame = encode_frame(envelope)
        delivered = 0
        evicted = 0

        def deliver(connection: SubscriberConnection) -> None:
            nonlocal delivered, evicted
            try:
                connection.write(frame)
            except Exception as e:
                logger.debug("Evicting subscriber %s: %s", connection.id, e)
                self.registry.remove(connection)
                connection.close()
                evicted += 1
            else:
                delivered += 1

        self.registry.for_each(deliver)
        logger.broadcast_sent(envelope.get("type", "?"), delivered, evicted)
        return delivered

    def broadcast_result(self, payload: SearchResult) -> int:
        return self.broadcast(result_envelope(payload))

    def broadcast_error(self, message: str) -> int:
        return self.broadcast(error_envelope(message))
