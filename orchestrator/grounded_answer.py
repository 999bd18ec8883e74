"""
GroundedAnswerResolver - search-grounded answer with a single ungrounded retry.

    ATTEMPT_GROUNDED --ok--> grounded answer
         | capability_unsupported
         v
    UNGROUNDED_RETRY --ok--> answer + disclaimer, is_grounded=False
         | any error
         v
    BackendCallError

Every other failure of the grounded attempt is raised immediately.
"""

from api.google_gemini_client import GeminiAnswerClient
from models.backend_result import NormalizedError
from models.search_models import GroundedAnswer, SourceSelection
from orchestrator.errors import BackendCallError, require_text
from orchestrator.prompts import UNGROUNDED_DISCLAIMER, grounded_prompt, ungrounded_prompt
from utils.logger import get_logger

logger = get_logger(__name__)


class GroundedAnswerResolver:
    def __init__(self, client: GeminiAnswerClient | None, language: str = "Swedish"):
        """
        Args:
            client: Generation backend, or None when no Google credential is configured
            language: Language the answer is written in
        """
        self.client = client
        self.language = language

    async def resolve(self, query: str, medical_terms: str, selection: SourceSelection) -> GroundedAnswer:
        query = require_text(query)
        medical_terms = require_text(medical_terms, field="medicalTerms")

        if self.client is None:
            raise BackendCallError(
                NormalizedError(
                    code="not_configured",
                    message="Google API key not configured",
                    provider="gemini",
                ),
                step="ai_search",
            )

        result = await self.client.invoke(
            grounded_prompt(query, medical_terms, selection, self.language), grounded=True
        )
        if result.is_success:
            output = result.value
            if output.search_queries:
                logger.debug(
                    "Grounding search queries",
                    extra={"extra_fields": {"queries": list(output.search_queries)}},
                )
            return GroundedAnswer(
                answer_text=output.text,
                grounding_sources=output.grounding_sources,
                is_grounded=True,
                search_queries=output.search_queries,
            )

        if result.error.code != "capability_unsupported":
            raise BackendCallError(result.error, step="ai_search")

        logger.warning(
            "Search grounding not supported, retrying without grounding",
            extra={"extra_fields": {"provider": result.provider, "error_message": result.error.message}},
        )
        retry = await self.client.invoke(ungrounded_prompt(query, medical_terms, self.language), grounded=False)
        if retry.is_error:
            raise BackendCallError(retry.error, step="ai_search")

        return GroundedAnswer(
            answer_text=retry.value.text + UNGROUNDED_DISCLAIMER,
            grounding_sources=(),
            is_grounded=False,
        )
