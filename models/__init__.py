"""
Models package for backend results and search domain records.
"""

from .backend_result import BackendResult, NormalizedError
from .search_models import (
    GenerationOutput,
    GroundedAnswer,
    GroundingSource,
    PipelineResult,
    SearchResult,
    Source,
    SourceSelection,
    TranslatedTerms,
    TranslationProvider,
)

__all__ = [
    "BackendResult",
    "GenerationOutput",
    "GroundedAnswer",
    "GroundingSource",
    "NormalizedError",
    "PipelineResult",
    "SearchResult",
    "Source",
    "SourceSelection",
    "TranslatedTerms",
    "TranslationProvider",
]
