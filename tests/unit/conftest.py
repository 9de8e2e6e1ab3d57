from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

import pytest
from fakes import BRAVE_TEST_URL, BraveStub, FakeConnection

from brave_bridge.core.config import Config
from brave_bridge.stream.hub import BroadcastHub
from brave_bridge.stream.registry import ConnectionRegistry


@pytest.fixture
def brave() -> BraveStub:
    return BraveStub()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def hub(registry: ConnectionRegistry) -> BroadcastHub:
    return BroadcastHub(registry)


@pytest.fixture
def make_subscriber(registry: ConnectionRegistry) -> Callable[..., FakeConnection]:
    def _make(name: str, fail: bool = False) -> FakeConnection:
        conn = FakeConnection(name, fail=fail)
        registry.add(conn)
        return conn

    return _make


@pytest.fixture
def settings() -> Config:
    return replace(
        Config.load(),
        brave_api_key="test-key",
        brave_search_url=BRAVE_TEST_URL,
        host="127.0.0.1",
        port=0,
        sse_poll_interval=0.05,
        shutdown_grace_seconds=2.0,
    )
