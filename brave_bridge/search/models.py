"""Search request model shared by the MCP tool and the HTTP trigger."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_COUNT = 10
MIN_COUNT = 1
MAX_COUNT = 20

# Advertised to agents only. Longer queries are passed through to Brave as-is.
QUERY_MAX_CHARS = 400
QUERY_MAX_WORDS = 50

# Brave returns an opaque JSON document; it is forwarded without interpretation.
SearchResult = Any


def clamp_count(count: int) -> int:
    """Clamp a requested result count into [MIN_COUNT, MAX_COUNT]."""
    return min(max(MIN_COUNT, count), MAX_COUNT)


class SearchRequest(BaseModel):
    """One search: a required non-empty query and an optional result count."""

    query: str = Field(min_length=1, description="Search query")
    count: int = Field(default=DEFAULT_COUNT, description="Number of results, clamped to 1-20")

    @field_validator("count", mode="before")
    @classmethod
    def _null_count_means_default(cls, value: Any) -> Any:
        return DEFAULT_COUNT if value is None else value

    @property
    def effective_count(self) -> int:
        return clamp_count(self.count)
