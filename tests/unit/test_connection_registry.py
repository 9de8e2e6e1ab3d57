import asyncio

import pytest
from fakes import FakeConnection

from brave_bridge.core.errors import SubscriberClosedError
from brave_bridge.stream.registry import ConnectionRegistry, SubscriberConnection


def test_remove_is_idempotent():
    registry = ConnectionRegistry()
    conn = FakeConnection("a")
    registry.add(conn)

    assert registry.remove(conn) is True
    assert registry.remove(conn) is False
    assert conn not in registry
    assert len(registry) == 0


def test_remove_unknown_connection_is_a_noop():
    registry = ConnectionRegistry()
    registry.add(FakeConnection("a"))
    assert registry.remove(FakeConnection("stranger")) is False
    assert len(registry) == 1


def test_for_each_visits_every_connection_once():
    registry = ConnectionRegistry()
    conns = [FakeConnection(str(i)) for i in range(5)]
    for conn in conns:
        registry.add(conn)

    seen = []
    registry.for_each(seen.append)

    assert sorted(c.id for c in seen) == sorted(c.id for c in conns)


def test_for_each_tolerates_removal_of_current_connection():
    registry = ConnectionRegistry()
    conns = [FakeConnection(str(i)) for i in range(4)]
    for conn in conns:
        registry.add(conn)

    seen = []

    def visit(conn):
        seen.append(conn)
        registry.remove(conn)

    registry.for_each(visit)

    assert len(seen) == 4
    assert len(registry) == 0


def test_for_each_skips_connections_removed_mid_walk():
    registry = ConnectionRegistry()
    a, b = FakeConnection("a"), FakeConnection("b")
    registry.add(a)
    registry.add(b)

    seen = []

    def visit(conn):
        seen.append(conn)
        registry.remove(b if conn is a else a)

    registry.for_each(visit)

    assert len(seen) == 1


def test_close_all_closes_and_forgets_everything():
    registry = ConnectionRegistry()
    conns = [FakeConnection(str(i)) for i in range(3)]
    for conn in conns:
        registry.add(conn)

    assert registry.close_all() == 3
    assert len(registry) == 0
    assert all(c.closed for c in conns)


def test_subscriber_write_after_close_raises():
    conn = SubscriberConnection()
    conn.close()
    with pytest.raises(SubscriberClosedError):
        conn.write("data: {}\n\n")


@pytest.mark.asyncio
async def test_subscriber_drains_pending_frames_then_reports_closed():
    conn = SubscriberConnection()
    conn.write("data: 1\n\n")
    conn.write("data: 2\n\n")
    conn.close()

    assert await conn.next_frame() == "data: 1\n\n"
    assert await conn.next_frame() == "data: 2\n\n"
    assert await conn.next_frame() is None
    assert await conn.next_frame() is None


@pytest.mark.asyncio
async def test_close_wakes_a_waiting_reader():
    conn = SubscriberConnection()
    reader = asyncio.create_task(conn.next_frame())
    await asyncio.sleep(0)
    conn.close()
    assert await asyncio.wait_for(reader, timeout=1.0) is None
