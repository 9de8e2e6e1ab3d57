"""Configuration from environment variables (.env)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


@dataclass
class Config:
    project_root: Path
    logs_dir: Path
    log_level: str
    brave_api_key: str
    brave_search_url: str
    brave_timeout_seconds: float
    host: str
    port: int
    sse_poll_interval: float  # Seconds between disconnect checks on an idle stream
    shutdown_grace_seconds: float

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        logs_dir = os.getenv("LOGS_DIR", "")
        return cls(
            project_root=project_root,
            logs_dir=Path(logs_dir) if logs_dir else project_root / "logs",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            brave_api_key=os.getenv("BRAVE_API_KEY", "").strip(),
            brave_search_url=os.getenv("BRAVE_SEARCH_URL", BRAVE_SEARCH_URL),
            brave_timeout_seconds=float(os.getenv("BRAVE_TIMEOUT_SECONDS", "10")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
            sse_poll_interval=float(os.getenv("SSE_POLL_INTERVAL", "1.0")),
            shutdown_grace_seconds=float(os.getenv("SHUTDOWN_GRACE_SECONDS", "2.0")),
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.brave_api_key:
            errors.append("BRAVE_API_KEY environment variable is required")
        if not 0 <= self.port <= 65535:
            errors.append(f"PORT must be between 0 and 65535, got {self.port}")
        if self.brave_timeout_seconds <= 0:
            errors.append("BRAVE_TIMEOUT_SECONDS must be positive")
        return errors


config = Config.load()
