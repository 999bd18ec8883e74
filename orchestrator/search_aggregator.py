"""
SearchAggregator - concurrent fan-out over the enabled search sources.

Every enabled source is queried at once and the aggregator waits for all of them.
Results are merged in source order (never arrival order); a failing source just
contributes nothing.
"""

import asyncio
import time
from dataclasses import dataclass, field

from api.search_client import SearchClient
from models.backend_result import BackendResult, NormalizedError
from models.search_models import SearchResult, Source, SourceSelection
from utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_RESULT_CAPS: dict[Source, int] = {
    Source.PUBMED: 5,
    Source.MEDLINEPLUS: 3,
    Source.INTERNETMEDICIN: 5,
    Source.ORTO: 5,
}


@dataclass(frozen=True)
class SearchOutcome:
    """Merged results plus the per-source outcomes they came from (input order)."""

    results: tuple[SearchResult, ...] = ()
    per_source: tuple[BackendResult, ...] = field(default_factory=tuple)

    @property
    def failed_sources(self) -> list[str]:
        return [r.provider for r in self.per_source if r.is_error]


class SearchAggregator:
    def __init__(self, clients: dict[Source, SearchClient]):
        self.clients = clients

    async def _safe_call(self, source: Source, client: SearchClient, query: str) -> BackendResult:
        """
        Call one client and make sure nothing escapes.

        Clients already return typed failures; this only catches bugs so one source
        can never take down the gather.
        """
        start_time = time.time()
        try:
            return await client.invoke(query)
        except Exception as e:
            logger.error(
                f"Unexpected error from {source.value}: {e}",
                extra={"extra_fields": {"source": source.value, "error_type": type(e).__name__}},
            )
            return BackendResult(
                provider=source.value,
                error=NormalizedError(
                    code="unknown",
                    message=f"Unexpected error: {e!s}",
                    provider=source.value,
                    details={"exception_type": type(e).__name__},
                ),
                latency_ms=int((time.time() - start_time) * 1000),
            )

    async def search(self, query: str, selection: SourceSelection) -> SearchOutcome:
        sources = [s for s in selection.enabled if s in self.clients]
        missing = [s.value for s in selection.enabled if s not in self.clients]
        if missing:
            logger.warning(
                "Enabled sources have no client",
                extra={"extra_fields": {"sources": missing}},
            )
        if not sources:
            return SearchOutcome()

        logger.info(
            f"Searching {len(sources)} sources",
            extra={"extra_fields": {"sources": [s.value for s in sources]}},
        )

        outcomes = await asyncio.gather(
            *(self._safe_call(source, self.clients[source], query) for source in sources)
        )

        merged: list[SearchResult] = []
        for source, outcome in zip(sources, outcomes):
            if outcome.is_error:
                continue
            merged.extend(outcome.value[: SOURCE_RESULT_CAPS[source]])

        result = SearchOutcome(results=tuple(merged), per_source=tuple(outcomes))
        logger.info(
            f"Search complete: {len(merged)} results",
            extra={
                "extra_fields": {
                    "result_count": len(merged),
                    "failed_sources": result.failed_sources,
                }
            },
        )
        return result
