import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from fakes import FakeConnection, decode_frame

from brave_bridge.stream.envelopes import (
    connected_envelope,
    encode_frame,
    error_envelope,
    result_envelope,
)
from brave_bridge.stream.hub import BroadcastHub
from brave_bridge.stream.registry import ConnectionRegistry


def test_encode_frame_matches_event_stream_format():
    assert encode_frame(connected_envelope()) == 'data: {"type":"connected"}\n\n'


def test_envelope_shapes():
    assert result_envelope({"a": 1}) == {"type": "result", "payload": {"a": 1}}
    assert error_envelope("boom") == {"type": "error", "error": "boom"}


def test_broadcast_writes_identical_frame_to_every_subscriber(hub, make_subscriber):
    subs = [make_subscriber(name) for name in ("a", "b", "c")]

    delivered = hub.broadcast(result_envelope({"hits": [1, 2]}))

    assert delivered == 3
    frames = {s.frames[0] for s in subs}
    assert len(frames) == 1
    assert decode_frame(frames.pop()) == {"type": "result", "payload": {"hits": [1, 2]}}


def test_failed_write_does_not_block_other_subscribers(hub, registry, make_subscriber):
    first = make_subscriber("first")
    broken = make_subscriber("broken", fail=True)
    last = make_subscriber("last")

    delivered = hub.broadcast_error("HTTP error! status: 503")

    assert delivered == 2
    assert first.envelopes() == [{"type": "error", "error": "HTTP error! status: 503"}]
    assert last.envelopes() == first.envelopes()
    assert broken not in registry
    assert broken.closed
    assert len(registry) == 2


def test_broadcast_with_no_subscribers_is_harmless(hub):
    assert hub.broadcast_result({"web": {}}) == 0


def test_removed_subscriber_receives_nothing(hub, registry, make_subscriber):
    stays = make_subscriber("stays")
    leaves = make_subscriber("leaves")
    registry.remove(leaves)

    hub.broadcast_result({"q": "cats"})

    assert len(stays.frames) == 1
    assert leaves.frames == []


_ops = st.lists(
    st.one_of(
        st.tuples(st.just("subscribe"), st.integers(0, 4)),
        st.tuples(st.just("unsubscribe"), st.integers(0, 4)),
        st.tuples(st.just("broadcast"), st.integers(0, 1000)),
    ),
    max_size=40,
)


@pytest.mark.property
@settings(max_examples=200)
@given(_ops)
def test_delivery_follows_membership_at_broadcast_time(ops):
    registry = ConnectionRegistry()
    hub = BroadcastHub(registry)
    conns = [FakeConnection(str(i)) for i in range(5)]
    expected: dict[str, list[int]] = {c.id: [] for c in conns}

    for op, arg in ops:
        if op == "subscribe":
            registry.add(conns[arg])
        elif op == "unsubscribe":
            registry.remove(conns[arg])
        else:
            for conn in conns:
                if conn in registry:
                    expected[conn.id].append(arg)
            hub.broadcast_result({"n": arg})

    for conn in conns:
        assert [e["payload"]["n"] for e in conn.envelopes()] == expected[conn.id]
