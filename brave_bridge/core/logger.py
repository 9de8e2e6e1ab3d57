"""Structured logging: stderr console plus a JSON-lines event file.

stdout carries the MCP stdio channel, so nothing here may write to it.
"""

import contextvars
import json
import logging
import os
import sys
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from brave_bridge.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m"
    if seconds >= 0.05:
        return f"{seconds:.1f}s"
    if seconds > 0:
        return "<0.1s"
    return "0s"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed call)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


_log_tool_start: contextvars.ContextVar[float | None] = contextvars.ContextVar(
    "log_tool_start", default=None
)
_log_upstream_start: contextvars.ContextVar[float | None] = contextvars.ContextVar(
    "log_upstream_start", default=None
)


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    codes = {
        "tool": "\033[38;5;81m",
        "sse": "\033[38;5;141m",
        "done_ok": "\033[38;5;78m",
        "done_fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class BridgeLogger:
    def __init__(self):
        self.log_file = config.logs_dir / "bridge.log"
        self._file_lock = threading.Lock()
        self._log_file_handle = None
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("brave_bridge")
        self.console.setLevel(logging.DEBUG)
        self.console.propagate = False
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(config.log_level)
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)
        self._setup_third_party_console_logging()

    def _setup_third_party_console_logging(self):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(self._console_formatter)
        for name in ("mcp", "uvicorn", "uvicorn.error", "httpx"):
            log = logging.getLogger(name)
            log.setLevel(logging.WARNING)
            log.propagate = False
            if not log.handlers:
                log.addHandler(handler)

    def _open_log_file(self):
        if self._log_file_handle is None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        return self._log_file_handle

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            try:
                handle = self._open_log_file()
            except OSError as e:
                self.console.debug(f"Event file unavailable: {e}")
                return
            handle.write(event.to_json() + "\n")
            handle.flush()

    def close(self) -> None:
        with self._file_lock:
            if self._log_file_handle is not None:
                self._log_file_handle.close()
                self._log_file_handle = None

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def subscriber_connected(self, connection_id: str, total: int):
        self.log_event(
            LogEvent(
                event_type="SSE_CONNECTED",
                timestamp=self._timestamp(),
                data={"connection": connection_id, "subscribers": total},
            )
        )
        self.console.info(
            f"{_c('sse')}SSE{_reset()}  + {connection_id}  ({total} connected)"
        )

    def subscriber_disconnected(self, connection_id: str, total: int, reason: str):
        self.log_event(
            LogEvent(
                event_type="SSE_DISCONNECTED",
                timestamp=self._timestamp(),
                data={"connection": connection_id, "subscribers": total, "reason": reason},
            )
        )
        self.console.info(
            f"{_c('sse')}SSE{_reset()}  - {connection_id}  {reason}  ({total} connected)"
        )

    def broadcast_sent(self, envelope_type: str, delivered: int, evicted: int):
        self.log_event(
            LogEvent(
                event_type="BROADCAST",
                timestamp=self._timestamp(),
                data={"type": envelope_type, "delivered": delivered, "evicted": evicted},
            )
        )
        evicted_note = f", {evicted} evicted" if evicted else ""
        self.console.debug(
            f"{_c('sse')}Broadcast{_reset()} {envelope_type} → {delivered} subscriber(s){evicted_note}"
        )

    def tool_call(self, tool_name: str, args: dict):
        _log_tool_start.set(time.monotonic())
        self.log_event(
            LogEvent(
                event_type="TOOL_CALL",
                timestamp=self._timestamp(),
                data={"tool": tool_name, "args": args},
            )
        )
        short_args = ", ".join(f"{k}={v!r}"[:72] for k, v in (args or {}).items())
        self.console.info(f"▶ Run  {_c('tool')}{tool_name}{_reset()}({short_args})")

    def tool_result(
        self,
        tool_name: str,
        result_length: int,
        success: bool,
        *,
        error_reason: str | None = None,
    ) -> None:
        start = _log_tool_start.get()
        _log_tool_start.set(None)
        elapsed = (time.monotonic() - start) if start is not None else 0.0
        data: dict[str, Any] = {
            "tool": tool_name,
            "result_length": result_length,
            "success": success,
            "duration_seconds": round(elapsed, 3),
        }
        if not success and error_reason:
            data["error_reason"] = error_reason[:500]
        self.log_event(
            LogEvent(event_type="TOOL_RESULT", timestamp=self._timestamp(), data=data)
        )
        dur = f"{_c('duration')}{_format_duration(elapsed)}{_reset()}"
        if success:
            status_str = f"{_c('done_ok')}[ok]{_reset()}"
        else:
            status_str = f"{_c('done_fail')}[failed]{_reset()} {_short_reason(error_reason)}"
        self.console.info(
            f"✓ Done  {_c('tool')}{tool_name}{_reset()}  {dur}  {result_length} chars  {status_str}"
        )

    def upstream_request(self, query: str, count: int):
        _log_upstream_start.set(time.monotonic())
        self.log_event(
            LogEvent(
                event_type="UPSTREAM_REQUEST",
                timestamp=self._timestamp(),
                data={"query": query[:400], "count": count},
            )
        )

    def upstream_response(self, status_code: int | None, success: bool):
        start = _log_upstream_start.get()
        _log_upstream_start.set(None)
        elapsed = (time.monotonic() - start) if start is not None else 0.0
        self.log_event(
            LogEvent(
                event_type="UPSTREAM_RESPONSE",
                timestamp=self._timestamp(),
                data={
                    "status": status_code,
                    "success": success,
                    "duration_seconds": round(elapsed, 3),
                },
            )
        )
        self.console.debug(
            f"Brave {status_code if status_code is not None else 'n/a'} in {_format_duration(elapsed)}"
        )

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        self.log_event(
            LogEvent(
                event_type="ERROR",
                timestamp=self._timestamp(),
                data={
                    "message": message,
                    "exception": str(exception) if exception else None,
                },
            )
        )
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception
        self.console.error(f"Error: {message}", *args, **log_kwargs)

    def info(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.info(message, *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        self.log_event(
            LogEvent(
                event_type="WARNING",
                timestamp=self._timestamp(),
                data={"message": message[:500]},
            )
        )
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.warning(message, *args, **log_kwargs)

    def debug(self, message: str, *args, **kwargs):
        allowed = {"exc_info", "stack_info", "stacklevel", "extra"}
        log_kwargs = {k: v for k, v in kwargs.items() if k in allowed}
        self.console.debug(message, *args, **log_kwargs)


logger = BridgeLogger()
