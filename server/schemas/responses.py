"""Pydantic response models (DTOs) for FastAPI endpoints."""

from typing import Any

from pydantic import Field

from models.backend_result import NormalizedError
from models.search_models import GroundedAnswer, PipelineResult, SearchResult, TranslatedTerms
from server.schemas.requests import CamelModel


class ErrorDTO(CamelModel):
    code: str
    message: str
    provider: str
    retryable: bool
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_normalized_error(cls, error: NormalizedError | None):
        if error is None:
            return None
        return cls(**error.to_dict())


class ErrorResponseDTO(CamelModel):
    error: str
    details: Any = None


class TranslateResponseDTO(CamelModel):
    medical_terms: str
    provider: str

    @classmethod
    def from_translation(cls, terms: TranslatedTerms):
        return cls(medical_terms=terms.text, provider=terms.provider.value)


class SearchResultDTO(CamelModel):
    title: str
    snippet: str
    url: str
    source: str
    source_name: str

    @classmethod
    def from_search_result(cls, result: SearchResult):
        return cls(
            title=result.title,
            snippet=result.snippet,
            url=result.url,
            source=result.source.value,
            source_name=result.source.label,
        )


class SearchResponseDTO(CamelModel):
    results: list[SearchResultDTO]

    @classmethod
    def from_results(cls, results):
        return cls(results=[SearchResultDTO.from_search_result(r) for r in results])


class GroundingSourceDTO(CamelModel):
    title: str
    url: str


class AiSearchResponseDTO(CamelModel):
    answer: str
    sources: list[GroundingSourceDTO]
    has_grounding: bool
    used_grounding: bool

    @classmethod
    def from_grounded_answer(cls, answer: GroundedAnswer):
        return cls(
            answer=answer.answer_text,
            sources=[GroundingSourceDTO(title=s.title, url=s.url) for s in answer.grounding_sources],
            has_grounding=answer.has_grounding,
            used_grounding=answer.is_grounded,
        )


class PipelineResponseDTO(CamelModel):
    query: str
    medical_terms: str
    translation_provider: str
    answer: AiSearchResponseDTO | None = None
    answer_error: ErrorDTO | None = None
    results: list[SearchResultDTO]
    search_error: ErrorDTO | None = None

    @classmethod
    def from_pipeline_result(cls, result: PipelineResult):
        return cls(
            query=result.query,
            medical_terms=result.translation.text,
            translation_provider=result.translation.provider.value,
            answer=AiSearchResponseDTO.from_grounded_answer(result.answer) if result.answer else None,
            answer_error=ErrorDTO.from_normalized_error(result.answer_error),
            results=[SearchResultDTO.from_search_result(r) for r in result.results],
            search_error=ErrorDTO.from_normalized_error(result.search_error),
        )


class HealthResponseDTO(CamelModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
