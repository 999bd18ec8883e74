import httpx

from api.base_client import BackendClientError
from api.schemas import ESearchResponse, ESummaryResponse, decode
from api.search_client import SearchClient
from models.search_models import SearchResult, Source

EUTILS_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{uid}/"


class PubMedClient(SearchClient):
    """
    Scientific literature search through NCBI E-utilities.

    Two round trips: esearch for the article ids, esummary for their metadata.
    """

    source = Source.PUBMED
    max_results = 5

    async def _search(self, http: httpx.AsyncClient, query: str) -> list[SearchResult]:
        payload = await self._get_json(
            http,
            f"{EUTILS_BASE_URL}/esearch.fcgi",
            {"db": "pubmed", "term": query, "retmax": self.max_results, "retmode": "json"},
        )
        esearch = decode(ESearchResponse, payload, "PubMed esearch").esearchresult
        if esearch.error and not esearch.idlist:
            raise BackendClientError("provider_error", f"PubMed esearch failed: {esearch.error}")
        ids = esearch.idlist[: self.max_results]
        if not ids:
            return []

        payload = await self._get_json(
            http,
            f"{EUTILS_BASE_URL}/esummary.fcgi",
            {"db": "pubmed", "id": ",".join(ids), "retmode": "json"},
        )
        summary = decode(ESummaryResponse, payload, "PubMed esummary")

        results = []
        for uid in ids:
            article = summary.article(uid)
            if article is None:
                continue
            authors = ", ".join(a.name for a in article.authors[:3] if a.name)
            citation = f"{article.source or 'PubMed'} ({article.pubdate or 'N/A'})"
            results.append(
                SearchResult(
                    title=article.title or "Untitled",
                    snippet=f"{authors} - {citation}" if authors else citation,
                    url=ARTICLE_URL.format(uid=uid),
                    source=self.source,
                )
            )
        return results
