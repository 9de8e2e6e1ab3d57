"""Entry point: Brave Search over MCP stdio and HTTP/SSE in one process."""

import asyncio
import os
import signal
import sys

from brave_bridge.core.errors import ConfigError
from brave_bridge.core.lifecycle import BridgeServer
from brave_bridge.core.logger import logger


_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_shutdown_signals(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))


def _remove_shutdown_signals() -> None:
    loop = asyncio.get_running_loop()
    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
        except NotImplementedError:
            signal.signal(sig, signal.SIG_DFL)


async def run_server(server: BridgeServer | None = None) -> int:
    server = server or BridgeServer()
    stop = asyncio.Event()
    _install_shutdown_signals(stop)

    try:
        await server.start()
        stop_task = asyncio.create_task(stop.wait())
        await asyncio.wait(
            {stop_task, server.channel_task}, return_when=asyncio.FIRST_COMPLETED
        )
        stop_task.cancel()
    finally:
        _remove_shutdown_signals()

    if not await server.shutdown():
        # A blocked stdin read cannot be cancelled; exit without waiting for it
        logger.warning("MCP channel did not close in time, exiting")
        logger.close()
        os._exit(0)
    logger.close()
    return 1 if server.channel_error is not None else 0


def main():
    try:
        server = BridgeServer()
    except ConfigError as e:
        for problem in e.problems:
            print(f"Error: {problem}", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(run_server(server)))


if __name__ == "__main__":
    main()
