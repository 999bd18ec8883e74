import httpx

from api.schemas import MedlinePlusResponse, decode
from api.search_client import SearchClient, truncate
from models.search_models import SearchResult, Source

MEDLINEPLUS_CONNECT_URL = "https://connect.medlineplus.gov/service"
ICD10_CODE_SYSTEM = "2.16.840.1.113883.6.103"
SNIPPET_CHARS = 200


class MedlinePlusClient(SearchClient):
    """Consumer health topics from MedlinePlus Connect."""

    source = Source.MEDLINEPLUS
    max_results = 3

    async def _search(self, http: httpx.AsyncClient, query: str) -> list[SearchResult]:
        payload = await self._get_json(
            http,
            MEDLINEPLUS_CONNECT_URL,
            {
                "mainSearchCriteria.v.cs": ICD10_CODE_SYSTEM,
                "mainSearchCriteria.v.c": query,
                "knowledgeResponseType": "application/json",
                "informationRecipient.languageCode.c": "en",
            },
        )
        feed = decode(MedlinePlusResponse, payload, "MedlinePlus").feed

        return [
            SearchResult(
                title=entry.title or "Untitled",
                snippet=truncate(entry.summary, SNIPPET_CHARS) or "No description available",
                url=entry.alternate_url() or "#",
                source=self.source,
            )
            for entry in feed.entry[: self.max_results]
        ]
