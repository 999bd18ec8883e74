import time
from typing import Any
from urllib.parse import quote

import httpx

from api.schemas import CustomSearchResponse, decode
from api.search_client import SearchClient
from models.backend_result import BackendResult
from models.search_models import SearchResult, Source

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class SiteSearchClient(SearchClient):
    """
    Google Custom Search restricted to one medical site.

    Without a Google API key and CSE id the client still succeeds, returning a single
    link to the site's own search page.
    """

    max_results = 5

    def __init__(
        self,
        source: Source,
        domain: str,
        description: str,
        api_key: str | None = None,
        cse_id: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.source = source
        self.domain = domain
        self.description = description
        self.api_key = api_key
        self.cse_id = cse_id

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.cse_id)

    def direct_search_url(self, query: str) -> str:
        return f"https://www.{self.domain}/search?q={quote(query, safe='')}"

    def direct_link(self, query: str) -> SearchResult:
        return SearchResult(
            title=f"Search {self.source.label} for: {query}",
            snippet=(
                f"Click to search {self.domain}, {self.description}. "
                "(Configure Google Custom Search for direct results)"
            ),
            url=self.direct_search_url(query),
            source=self.source,
        )

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        if not self.configured:
            return self._success([self.direct_link(query)], time.time(), result_count=1, degraded=True)
        return await super().invoke(query, **params)

    async def _search(self, http: httpx.AsyncClient, query: str) -> list[SearchResult]:
        payload = await self._get_json(
            http,
            CUSTOM_SEARCH_URL,
            {
                "key": self.api_key,
                "cx": self.cse_id,
                "q": f"{query} site:{self.domain}",
                "num": self.max_results,
            },
        )
        response = decode(CustomSearchResponse, payload, f"Custom Search ({self.domain})")

        return [
            SearchResult(
                title=item.title or "Untitled",
                snippet=item.snippet or "No description available",
                url=item.link,
                source=self.source,
            )
            for item in response.items[: self.max_results]
            if item.link
        ]


def internetmedicin_client(api_key: str | None = None, cse_id: str | None = None, **kwargs: Any) -> SiteSearchClient:
    return SiteSearchClient(
        Source.INTERNETMEDICIN,
        domain="internetmedicin.se",
        description="a Swedish medical information database for healthcare professionals",
        api_key=api_key,
        cse_id=cse_id,
        **kwargs,
    )


def orto_client(api_key: str | None = None, cse_id: str | None = None, **kwargs: Any) -> SiteSearchClient:
    return SiteSearchClient(
        Source.ORTO,
        domain="orto.nu",
        description="a Swedish orthopedic information resource",
        api_key=api_key,
        cse_id=cse_id,
        **kwargs,
    )
