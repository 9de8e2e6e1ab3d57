"""Brave web search: request model and upstream client."""

from brave_bridge.search.brave import BraveSearchClient
from brave_bridge.search.models import SearchRequest, clamp_count

__all__ = [
    "BraveSearchClient",
    "SearchRequest",
    "clamp_count",
]
