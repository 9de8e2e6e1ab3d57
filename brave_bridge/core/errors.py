"""Error taxonomy shared by both transports."""


class BridgeError(Exception):
    """Base class for bridge failures."""


class ConfigError(BridgeError):
    """Required configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


class ToolNotFoundError(BridgeError):
    """A tool call named a tool this server does not expose."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class UpstreamError(BridgeError):
    """The search provider failed: non-success status, network error or bad body."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SubscriberClosedError(BridgeError):
    """A write hit a subscriber whose stream is already closed."""
