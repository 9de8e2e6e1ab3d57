"""Brave Search API client."""

import httpx

from brave_bridge.core.config import config
from brave_bridge.core.errors import UpstreamError
from brave_bridge.core.logger import logger
from brave_bridge.search.models import SearchRequest, SearchResult


class BraveSearchClient:

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = (api_key if api_key is not None else config.brave_api_key).strip()
        self.base_url = base_url or config.brave_search_url
        self.client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else config.brave_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": self.api_key,
        }

    async def search(self, request: SearchRequest) -> SearchResult:
        """Run one web search and return the provider's JSON document.

        Raises UpstreamError on a non-success status, a transport failure
        or a body that is not JSON.
        """
        count = request.effective_count
        logger.upstream_request(request.query, count)
        try:
            response = await self.client.get(
                self.base_url,
                params={"q": request.query, "count": str(count)},
                headers=self._headers(),
            )
        except Exception as e:
            # httpx.InvalidURL is not an HTTPError, so catch broadly
            logger.upstream_response(None, False)
            raise UpstreamError(str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.upstream_response(response.status_code, False)
            raise UpstreamError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except Exception as e:
            # RecursionError from deeply nested bodies as well as ValueError
            logger.upstream_response(response.status_code, False)
            raise UpstreamError(
                f"Invalid JSON from Brave Search: {str(e) or type(e).__name__}"
            ) from e
        logger.upstream_response(response.status_code, True)
        return data

    async def close(self) -> None:
        await self.client.aclose()
