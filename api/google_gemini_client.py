import time
from typing import Any

from google import genai
from google.genai import types

from api.base_client import BackendClientError, BaseBackendClient, status_code_of
from api.translation_client import (
    TRANSLATION_SYSTEM_PROMPT,
    TranslationClient,
    require_terms,
    translation_user_prompt,
)
from models.backend_result import BackendResult
from models.search_models import GenerationOutput, GroundingSource

# Best-effort: Gemini reports an unsupported grounding tool only in the error text.
GROUNDING_UNSUPPORTED_MARKERS = (
    "search grounding",
    "google_search is not supported",
    "google_search_retrieval is not supported",
)


def _build_client(api_key: str, timeout_s: float) -> genai.Client:
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
    )


def _first_candidate(response: Any) -> Any:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        raise BackendClientError("malformed_response", "No candidates in Gemini response")
    return candidates[0]


def _finish_reason(candidate: Any) -> str | None:
    reason = getattr(candidate, "finish_reason", None)
    if reason is None:
        return None
    return str(getattr(reason, "value", reason))


def _first_text(candidate: Any) -> str | None:
    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        text = getattr(part, "text", None)
        if text:
            return text
    return None


def is_grounding_unsupported(exc: Exception) -> bool:
    """True when a failed grounded request was rejected because of the grounding tool itself."""
    status = status_code_of(exc)
    if status is not None and not 400 <= status < 500:
        return False
    message = str(exc).lower()
    return any(marker in message for marker in GROUNDING_UNSUPPORTED_MARKERS)


class GeminiTranslationClient(TranslationClient):
    """Medical term translation through the Gemini API (google-genai)."""

    provider_name = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash", client: Any = None, **kwargs: Any):
        super().__init__(api_key, model_name, **kwargs)
        self.client = client or _build_client(api_key, self.timeout_s)

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        start_time = time.time()
        try:
            response = await self.client.aio.models.generate_content(
                model=params.get("model", self.model_name),
                contents=translation_user_prompt(query),
                config=types.GenerateContentConfig(
                    system_instruction=TRANSLATION_SYSTEM_PROMPT,
                    temperature=params.get("temperature", 0.2),
                ),
            )
            candidate = _first_candidate(response)
            if _finish_reason(candidate) == "MAX_TOKENS":
                raise BackendClientError(
                    "malformed_response", "Gemini answer was cut off (MAX_TOKENS)", retryable=True
                )
            text = _first_text(candidate)
            if not text:
                raise BackendClientError(
                    "malformed_response",
                    f"Empty Gemini answer: {_finish_reason(candidate) or 'unknown reason'}",
                )
            terms = require_terms(text, self.provider_name)
            return self._success(terms, start_time, model=self.model_name)
        except Exception as e:
            return self._failure(e, start_time)


class GeminiAnswerClient(BaseBackendClient):
    """
    Long-form answer generation through Gemini, optionally grounded with Google Search.

    A grounded request rejected because the model cannot use the search tool comes back
    as a ``capability_unsupported`` error; deciding what to do about it is up to the caller.
    """

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        client: Any = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        if not api_key:
            raise ValueError("API key is required for Gemini")
        self.model_name = model_name
        self.client = client or _build_client(api_key, self.timeout_s)

    def _generation_config(self, grounded: bool, params: dict[str, Any]) -> types.GenerateContentConfig:
        if grounded:
            return types.GenerateContentConfig(
                temperature=params.get("temperature", 0.1),
                max_output_tokens=params.get("max_output_tokens", 8000),
                tools=[types.Tool(google_search=types.GoogleSearch())],
            )
        return types.GenerateContentConfig(
            temperature=params.get("temperature", 0.2),
            max_output_tokens=params.get("max_output_tokens", 8000),
        )

    async def invoke(self, query: str, grounded: bool = True, **params: Any) -> BackendResult:
        """
        Generate an answer for a fully built prompt.

        Args:
            query: The complete prompt text
            grounded: Attach the Google Search tool

        Returns:
            BackendResult whose value is a GenerationOutput
        """
        start_time = time.time()
        try:
            response = await self.client.aio.models.generate_content(
                model=params.get("model", self.model_name),
                contents=query,
                config=self._generation_config(grounded, params),
            )
            output = self._decode(response, grounded)
            return self._success(
                output,
                start_time,
                model=self.model_name,
                grounded=grounded,
                grounding_source_count=len(output.grounding_sources),
            )
        except Exception as e:
            if grounded and not isinstance(e, BackendClientError) and is_grounding_unsupported(e):
                e = BackendClientError(
                    "capability_unsupported",
                    f"Search grounding not supported by {self.model_name}: {e}",
                    model=self.model_name,
                )
            return self._failure(e, start_time)

    @staticmethod
    def _decode(response: Any, grounded: bool) -> GenerationOutput:
        candidate = _first_candidate(response)
        text = _first_text(candidate)
        if not text:
            raise BackendClientError("malformed_response", "Empty Gemini answer")

        sources: list[GroundingSource] = []
        queries: list[str] = []
        metadata = getattr(candidate, "grounding_metadata", None)
        if grounded and metadata is not None:
            for chunk in getattr(metadata, "grounding_chunks", None) or []:
                web = getattr(chunk, "web", None)
                uri = getattr(web, "uri", None)
                title = getattr(web, "title", None)
                if uri and title:
                    sources.append(GroundingSource(title=title, url=uri))
            queries = list(getattr(metadata, "web_search_queries", None) or [])

        return GenerationOutput(
            text=text.strip(),
            grounding_sources=tuple(sources),
            search_queries=tuple(queries),
        )
