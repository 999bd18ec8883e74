"""
SymptomSearchOrchestrator - the single entry point of the search pipeline.

Key guarantees:
- API/CLI layers stay thin (no provider imports there)
- Blank input is rejected before any backend is called
- Translation runs first; the answer and the search then run concurrently and
  neither one's failure cancels the other
"""

import asyncio
import concurrent.futures

from api.google_gemini_client import GeminiAnswerClient
from api.medlineplus_client import MedlinePlusClient
from api.pubmed_client import PubMedClient
from api.search_client import SearchClient
from api.site_search_client import internetmedicin_client, orto_client
from api.translation_client import TranslationClient
from config.config import Config
from models.backend_result import NormalizedError
from models.search_models import (
    GroundedAnswer,
    PipelineResult,
    SearchResult,
    Source,
    SourceSelection,
    TranslatedTerms,
    TranslationProvider,
)
from orchestrator.errors import BackendCallError, require_text
from orchestrator.grounded_answer import GroundedAnswerResolver
from orchestrator.search_aggregator import SearchAggregator
from orchestrator.translation_resolver import TranslationResolver
from utils.logger import get_logger

logger = get_logger(__name__)


def build_search_clients(config: Config) -> dict[Source, SearchClient]:
    api_key = config.google_api_key if config.has_custom_search else None
    cse_id = config.google_cse_id if config.has_custom_search else None
    timeout_s = config.request_timeout_s
    return {
        Source.PUBMED: PubMedClient(timeout_s=timeout_s),
        Source.MEDLINEPLUS: MedlinePlusClient(timeout_s=timeout_s),
        Source.INTERNETMEDICIN: internetmedicin_client(api_key, cse_id, timeout_s=timeout_s),
        Source.ORTO: orto_client(api_key, cse_id, timeout_s=timeout_s),
    }


def build_answer_client(config: Config) -> GeminiAnswerClient | None:
    if not config.google_api_key:
        return None
    return GeminiAnswerClient(
        api_key=config.google_api_key,
        model_name=config.gemini_model,
        timeout_s=config.request_timeout_s,
    )


def _as_normalized(exc: Exception, provider: str) -> NormalizedError:
    if isinstance(exc, BackendCallError):
        return exc.error
    return NormalizedError(
        code="unknown",
        message=f"Unexpected error: {exc!s}",
        provider=provider,
        details={"exception_type": type(exc).__name__},
    )


class SymptomSearchOrchestrator:
    """
    Facade over translation, grounded answer and multi-source search.

    Example usage:
        orchestrator = SymptomSearchOrchestrator(Config.from_env())
        result = orchestrator.run_sync("bad headache with light sensitivity")
        print(result.translation.text)
        for hit in result.results:
            print(f"[{hit.source.label}] {hit.title}")
    """

    def __init__(
        self,
        config: Config,
        *,
        translation_clients: dict[TranslationProvider, TranslationClient] | None = None,
        search_clients: dict[Source, SearchClient] | None = None,
        answer_client: GeminiAnswerClient | None = None,
    ):
        """
        Args:
            config: Explicit pipeline configuration
            translation_clients: Override translation backends (built from config per call otherwise)
            search_clients: Override search backends (built from config otherwise)
            answer_client: Override the generation backend (built from config per call otherwise)

        SDK-backed clients built from config are not kept between calls: each
        run_sync() gets a fresh event loop and their connection pools are bound to one.
        """
        self.config = config
        self.translator = TranslationResolver(config, clients=translation_clients)
        self.aggregator = SearchAggregator(
            search_clients if search_clients is not None else build_search_clients(config)
        )
        self.answer_client = answer_client

    async def translate(self, query: str) -> TranslatedTerms:
        return await self.translator.resolve(query)

    async def ai_search(
        self, query: str, medical_terms: str, sources: SourceSelection | None = None
    ) -> GroundedAnswer:
        client = self.answer_client if self.answer_client is not None else build_answer_client(self.config)
        answerer = GroundedAnswerResolver(client, language=self.config.answer_language)
        return await answerer.resolve(query, medical_terms, sources or SourceSelection.all_enabled())

    async def search(self, query: str, sources: SourceSelection | None = None) -> list[SearchResult]:
        query = require_text(query)
        outcome = await self.aggregator.search(query, sources or SourceSelection.all_enabled())
        return list(outcome.results)

    async def run(
        self,
        query: str,
        sources: SourceSelection | None = None,
        *,
        include_answer: bool = True,
    ) -> PipelineResult:
        """
        Translate, then answer and search concurrently.

        Raises:
            QueryValidationError: blank query
            BackendCallError: translation failed (nothing else is attempted)
        """
        query = require_text(query)
        selection = sources or SourceSelection.all_enabled()

        translation = await self.translate(query)
        logger.info(
            "Translation complete",
            extra={"extra_fields": {"provider": translation.provider.value, "terms": translation.text}},
        )

        search_task = self.search(translation.text, selection)
        if include_answer:
            answer_task = self.ai_search(query, translation.text, selection)
            answer_outcome, search_outcome = await asyncio.gather(
                answer_task, search_task, return_exceptions=True
            )
        else:
            answer_outcome = None
            (search_outcome,) = await asyncio.gather(search_task, return_exceptions=True)

        for outcome in (answer_outcome, search_outcome):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        answer: GroundedAnswer | None = None
        answer_error: NormalizedError | None = None
        if isinstance(answer_outcome, Exception):
            answer_error = _as_normalized(answer_outcome, provider="gemini")
            logger.warning(
                f"Answer step failed: {answer_error.code}",
                extra={"extra_fields": {"error_message": answer_error.message}},
            )
        else:
            answer = answer_outcome

        results: tuple[SearchResult, ...] = ()
        search_error: NormalizedError | None = None
        if isinstance(search_outcome, Exception):
            search_error = _as_normalized(search_outcome, provider="search")
            logger.error(
                f"Search step failed: {search_error.code}",
                extra={"extra_fields": {"error_message": search_error.message}},
            )
        else:
            results = tuple(search_outcome)

        return PipelineResult(
            query=query,
            translation=translation,
            results=results,
            answer=answer,
            answer_error=answer_error,
            search_error=search_error,
        )

    def run_sync(
        self,
        query: str,
        sources: SourceSelection | None = None,
        *,
        include_answer: bool = True,
    ) -> PipelineResult:
        """
        Synchronous wrapper for run().

        When an event loop is already running, the pipeline runs on a worker thread
        with its own loop.
        """

        def _run_in_new_loop() -> PipelineResult:
            return asyncio.run(self.run(query, sources, include_answer=include_answer))

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return _run_in_new_loop()

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            return executor.submit(_run_in_new_loop).result()
