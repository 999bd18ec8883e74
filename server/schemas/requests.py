"""Pydantic request models for FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.search_models import SourceSelection


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourcesRequest(CamelModel):
    """Enabled flags per source; anything not sent is disabled."""

    pubmed: bool = False
    medlineplus: bool = False
    internetmedicin: bool = False
    orto: bool = False

    def to_selection(self) -> SourceSelection:
        return SourceSelection.from_mapping(self.model_dump())


def selection_of(sources: SourcesRequest | None) -> SourceSelection:
    return sources.to_selection() if sources is not None else SourceSelection.all_enabled()


class TranslateRequest(CamelModel):
    query: str = Field(..., min_length=1)


class SearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    sources: SourcesRequest | None = None


class AiSearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    medical_terms: str = Field(..., min_length=1)
    sources: SourcesRequest | None = None


class PipelineRequest(CamelModel):
    query: str = Field(..., min_length=1)
    sources: SourcesRequest | None = None
    include_answer: bool = True
