import asyncio
import os
from typing import Any

import pytest

# Keep test runs from writing log files; must be set before utils.logger is imported.
os.environ.setdefault("LOG_TO_FILES", "false")

from api.search_client import SearchClient  # noqa: E402
from models.backend_result import BackendResult, NormalizedError  # noqa: E402
from models.search_models import GenerationOutput, SearchResult, Source  # noqa: E402


def make_results(source: Source, count: int, prefix: str | None = None) -> list[SearchResult]:
    prefix = prefix or source.value
    return [
        SearchResult(
            title=f"{prefix} result {i}",
            snippet=f"{prefix} snippet {i}",
            url=f"https://example.org/{prefix}/{i}",
            source=source,
        )
        for i in range(count)
    ]


def error_result(provider: str, code: str, message: str = "boom", retryable: bool = False) -> BackendResult:
    return BackendResult(
        provider=provider,
        error=NormalizedError(code=code, message=message, provider=provider, retryable=retryable),
    )


class FakeSearchClient(SearchClient):
    """Search client with canned results; goes through the real SearchClient.invoke."""

    max_results = 50

    def __init__(self, source: Source, results=None, error: Exception | None = None, delay_s: float = 0.0):
        super().__init__()
        self.source = source
        self.results = list(results or [])
        self.error = error
        self.delay_s = delay_s
        self.calls: list[str] = []

    async def _search(self, http, query: str) -> list[SearchResult]:
        self.calls.append(query)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return list(self.results)


class ExplodingSearchClient(FakeSearchClient):
    """Raises straight out of invoke, bypassing the client's own error handling."""

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        self.calls.append(query)
        raise RuntimeError("client bug")


class FakeTranslationClient:
    def __init__(self, provider_name: str, terms: str | None = None, error_code: str | None = None):
        self.provider_name = provider_name
        self.terms = terms
        self.error_code = error_code
        self.calls: list[str] = []

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        self.calls.append(query)
        if self.error_code:
            return error_result(self.provider_name, self.error_code)
        return BackendResult(provider=self.provider_name, value=self.terms)


class FakeAnswerClient:
    """Returns queued results in order and records (prompt, grounded) per call."""

    provider_name = "gemini"

    def __init__(self, *results: BackendResult):
        self.results = list(results)
        self.calls: list[tuple[str, bool]] = []

    async def invoke(self, query: str, grounded: bool = True, **params: Any) -> BackendResult:
        self.calls.append((query, grounded))
        return self.results.pop(0)


def answer_result(text: str, sources=(), queries=()) -> BackendResult:
    return BackendResult(
        provider="gemini",
        value=GenerationOutput(text=text, grounding_sources=tuple(sources), search_queries=tuple(queries)),
    )


@pytest.fixture
def all_search_clients():
    return {
        Source.PUBMED: FakeSearchClient(Source.PUBMED, make_results(Source.PUBMED, 2)),
        Source.MEDLINEPLUS: FakeSearchClient(Source.MEDLINEPLUS, make_results(Source.MEDLINEPLUS, 2)),
        Source.INTERNETMEDICIN: FakeSearchClient(Source.INTERNETMEDICIN, make_results(Source.INTERNETMEDICIN, 1)),
        Source.ORTO: FakeSearchClient(Source.ORTO, make_results(Source.ORTO, 1)),
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider credentials so Config.from_env sees none."""
    for key in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "GOOGLE_API_KEY",
        "GOOGLE_CSE_ID",
        "ANTHROPIC_MODEL",
        "OPENAI_MODEL",
        "GEMINI_MODEL",
        "ANSWER_LANGUAGE",
        "REQUEST_TIMEOUT_SECONDS",
    ):
        # setenv first so teardown also removes values a test loads from a .env file
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch
