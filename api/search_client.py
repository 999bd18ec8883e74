import time
from abc import abstractmethod
from typing import Any

import httpx

from api.base_client import BackendClientError, BaseBackendClient
from models.backend_result import BackendResult
from models.search_models import SearchResult, Source


def truncate(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class SearchClient(BaseBackendClient):
    """
    A search backend for one Source.

    Subclasses implement ``_search``; ``invoke`` turns anything it raises into a
    typed failure and reports the number of results it produced.
    """

    source: Source
    max_results: int = 5

    @property
    def provider_name(self) -> str:  # type: ignore[override]
        return self.source.value

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        start_time = time.time()
        try:
            async with self._http() as http:
                results = await self._search(http, query)
            return self._success(results, start_time, result_count=len(results))
        except Exception as e:
            return self._failure(e, start_time)

    @abstractmethod
    async def _search(self, http: httpx.AsyncClient, query: str) -> list[SearchResult]:
        """Run the provider request(s) and map the payload to SearchResults."""

    async def _get_json(self, http: httpx.AsyncClient, url: str, params: dict[str, Any]) -> Any:
        response = await http.get(url, params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise BackendClientError(
                "malformed_response", f"{self.source.label} returned a non-JSON body"
            ) from e
