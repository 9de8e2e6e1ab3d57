"""Broadcast envelopes and their Server-Sent Events framing."""

import json
from typing import Any

from brave_bridge.search.models import SearchResult

Envelope = dict[str, Any]

CONNECTED = "connected"
RESULT = "result"
ERROR = "error"


def connected_envelope() -> Envelope:
    """Sent once, privately, to a subscriber that just joined."""
    return {"type": CONNECTED}


def result_envelope(payload: SearchResult) -> Envelope:
    return {"type": RESULT, "payload": payload}


def error_envelope(message: str) -> Envelope:
    return {"type": ERROR, "error": message}


def encode_frame(envelope: Envelope) -> str:
    """Serialize an envelope as one `data:` frame."""
    body = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False, default=str)
    return f"data: {body}\n\n"
