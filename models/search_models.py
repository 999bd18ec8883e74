"""
Domain records shared by the backend clients, the resolvers and the facade.

Everything here is immutable and created fresh per request.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from models.backend_result import NormalizedError


class Source(str, Enum):
    """Search sources in canonical invocation order."""

    PUBMED = "pubmed"
    MEDLINEPLUS = "medlineplus"
    INTERNETMEDICIN = "internetmedicin"
    ORTO = "orto"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    Source.PUBMED: "PubMed",
    Source.MEDLINEPLUS: "MedlinePlus",
    Source.INTERNETMEDICIN: "Internetmedicin",
    Source.ORTO: "Orto.nu",
}


class TranslationProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
    KEYWORD_FALLBACK = "keyword_fallback"


@dataclass(frozen=True)
class SourceSelection:
    """
    Which sources are enabled for one request.

    Sources missing from ``flags`` are disabled. Use ``all_enabled()`` when the
    caller supplied no selection at all.
    """

    flags: Mapping[Source, bool] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))

    @classmethod
    def all_enabled(cls) -> "SourceSelection":
        return cls({source: True for source in Source})

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, bool] | None) -> "SourceSelection":
        if mapping is None:
            return cls.all_enabled()
        flags = {}
        for key, enabled in mapping.items():
            flags[Source(key)] = bool(enabled)
        return cls(flags)

    def is_enabled(self, source: Source) -> bool:
        return bool(self.flags.get(source, False))

    @property
    def enabled(self) -> list[Source]:
        return [source for source in Source if self.is_enabled(source)]


@dataclass(frozen=True)
class SearchResult:
    title: str
    snippet: str
    url: str
    source: Source


@dataclass(frozen=True)
class GroundingSource:
    title: str
    url: str


@dataclass(frozen=True)
class GenerationOutput:
    """Decoded generation backend response."""

    text: str
    grounding_sources: tuple[GroundingSource, ...] = ()
    search_queries: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroundedAnswer:
    answer_text: str
    grounding_sources: tuple[GroundingSource, ...] = ()
    is_grounded: bool = True
    search_queries: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.is_grounded and self.grounding_sources:
            raise ValueError("An ungrounded answer cannot carry grounding sources")

    @property
    def has_grounding(self) -> bool:
        return len(self.grounding_sources) > 0


@dataclass(frozen=True)
class TranslatedTerms:
    text: str
    provider: TranslationProvider

    def __post_init__(self):
        if not self.text.strip():
            raise ValueError("Translated terms must not be empty")


@dataclass(frozen=True)
class PipelineResult:
    """Composite response of one orchestration call."""

    query: str
    translation: TranslatedTerms
    results: tuple[SearchResult, ...] = ()
    answer: GroundedAnswer | None = None
    answer_error: NormalizedError | None = None
    search_error: NormalizedError | None = None
