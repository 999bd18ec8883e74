"""
Backend client tests.

Every client is exercised offline: REST backends through httpx.MockTransport,
LLM backends through fake SDK objects. The contract under test is that a client
never raises and always returns a typed BackendResult.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from api.anthropic_client import AnthropicTranslationClient
from api.google_gemini_client import (
    GeminiAnswerClient,
    GeminiTranslationClient,
    is_grounding_unsupported,
)
from api.medlineplus_client import MedlinePlusClient
from api.openai_client import OpenAITranslationClient
from api.pubmed_client import PubMedClient
from api.site_search_client import internetmedicin_client, orto_client
from models.backend_result import BackendResult, NormalizedError
from models.search_models import Source

pytestmark = pytest.mark.unit


class FakeStatusError(Exception):
    """Mimics SDK errors that carry an HTTP status (openai/anthropic style)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class FakeGenaiError(Exception):
    """Mimics google-genai APIError, which exposes the status as ``code``."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code


def invoke_with_transport(build_client, handler, query: str) -> BackendResult:
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await build_client(http).invoke(query)

    return asyncio.run(go())


# -------------------------------------------------------------------
# PubMed
# -------------------------------------------------------------------

ESUMMARY_PAYLOAD = {
    "result": {
        "uids": ["111", "222"],
        "111": {
            "title": "Migraine with aura: a review",
            "authors": [{"name": "Andersson A"}, {"name": "Berg B"}, {"name": "Carlsson C"}, {"name": "Dahl D"}],
            "source": "Cephalalgia",
            "pubdate": "2023 Jan",
        },
        "222": {"title": "Photophobia in headache disorders", "authors": [], "source": "", "pubdate": ""},
    }
}


def test_pubmed_two_step_search_maps_articles():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("esearch.fcgi"):
            return httpx.Response(200, json={"esearchresult": {"idlist": ["111", "222"]}})
        return httpx.Response(200, json=ESUMMARY_PAYLOAD)

    result = invoke_with_transport(lambda http: PubMedClient(http_client=http), handler, "cephalgia")

    assert result.is_success
    assert result.provider == "pubmed"
    assert result.metadata["result_count"] == 2
    first, second = result.value
    assert first.title == "Migraine with aura: a review"
    assert first.snippet == "Andersson A, Berg B, Carlsson C - Cephalalgia (2023 Jan)"
    assert first.url == "https://pubmed.ncbi.nlm.nih.gov/111/"
    assert first.source == Source.PUBMED
    assert second.snippet == "PubMed (N/A)"

    assert seen[0].url.params["term"] == "cephalgia"
    assert seen[0].url.params["retmax"] == "5"
    assert seen[1].url.params["id"] == "111,222"


def test_pubmed_no_hits_skips_summary_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"esearchresult": {"idlist": []}})

    result = invoke_with_transport(lambda http: PubMedClient(http_client=http), handler, "nothing")

    assert result.is_success
    assert result.value == []
    assert len(seen) == 1


def test_pubmed_bad_article_is_skipped_and_others_kept():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("esearch.fcgi"):
            return httpx.Response(200, json={"esearchresult": {"idlist": ["111", "222"]}})
        return httpx.Response(
            200,
            json={
                "result": {
                    "uids": ["111", "222"],
                    "111": {"title": "Good article", "authors": [], "source": "BMJ", "pubdate": "2024"},
                    "222": {"title": None, "authors": "not a list"},
                }
            },
        )

    result = invoke_with_transport(lambda http: PubMedClient(http_client=http), handler, "cephalgia")

    assert result.is_success
    assert [hit.title for hit in result.value] == ["Good article"]
    assert result.value[0].url == "https://pubmed.ncbi.nlm.nih.gov/111/"


def test_pubmed_esearch_error_is_provider_error():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"esearchresult": {"ERROR": "Invalid query syntax"}})

    result = invoke_with_transport(lambda http: PubMedClient(http_client=http), handler, "((")

    assert result.is_error
    assert result.error.code == "provider_error"
    assert "Invalid query syntax" in result.error.message
    assert len(seen) == 1


def test_pubmed_server_error_is_retryable_provider_error():
    result = invoke_with_transport(
        lambda http: PubMedClient(http_client=http),
        lambda request: httpx.Response(503, text="Service Unavailable"),
        "cephalgia",
    )

    assert result.is_error
    assert result.error.code == "provider_error"
    assert result.error.retryable is True
    assert result.error.details["status_code"] == 503


def test_pubmed_missing_fields_is_malformed_response():
    result = invoke_with_transport(
        lambda http: PubMedClient(http_client=http),
        lambda request: httpx.Response(200, json={"header": {}}),
        "cephalgia",
    )

    assert result.error.code == "malformed_response"
    assert result.error.details["errors"]


def test_pubmed_non_json_body_is_malformed_response():
    result = invoke_with_transport(
        lambda http: PubMedClient(http_client=http),
        lambda request: httpx.Response(200, text="<html>maintenance</html>"),
        "cephalgia",
    )

    assert result.error.code == "malformed_response"


def test_pubmed_timeout_is_normalized():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    result = invoke_with_transport(lambda http: PubMedClient(http_client=http), handler, "cephalgia")

    assert result.error.code == "timeout"
    assert result.error.retryable is True


# -------------------------------------------------------------------
# MedlinePlus
# -------------------------------------------------------------------


def _medline_entry(i: int, summary: str = "Short summary"):
    return {
        "title": {"_value": f"Topic {i}"},
        "summary": {"_value": summary},
        "link": [{"href": f"https://medlineplus.gov/topic{i}.html", "rel": "alternate"}],
    }


def test_medlineplus_caps_and_truncates():
    seen = []
    long_summary = "x" * 250

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        entries = [_medline_entry(0, long_summary)] + [_medline_entry(i) for i in range(1, 5)]
        return httpx.Response(200, json={"feed": {"entry": entries}})

    result = invoke_with_transport(lambda http: MedlinePlusClient(http_client=http), handler, "cephalgia")

    assert result.is_success
    assert len(result.value) == 3
    first = result.value[0]
    assert first.title == "Topic 0"
    assert first.snippet == "x" * 200 + "..."
    assert first.url == "https://medlineplus.gov/topic0.html"
    assert first.source == Source.MEDLINEPLUS

    params = seen[0].url.params
    assert params["mainSearchCriteria.v.c"] == "cephalgia"
    assert params["mainSearchCriteria.v.cs"] == "2.16.840.1.113883.6.103"
    assert params["knowledgeResponseType"] == "application/json"


def test_medlineplus_entry_without_summary_or_link():
    payload = {"feed": {"entry": {"title": {"_value": "Fever"}}}}
    result = invoke_with_transport(
        lambda http: MedlinePlusClient(http_client=http),
        lambda request: httpx.Response(200, json=payload),
        "pyrexia",
    )

    (hit,) = result.value
    assert hit.snippet == "No description available"
    assert hit.url == "#"


def test_medlineplus_empty_feed_is_success_with_no_results():
    result = invoke_with_transport(
        lambda http: MedlinePlusClient(http_client=http),
        lambda request: httpx.Response(200, json={"feed": {}}),
        "rare",
    )

    assert result.is_success
    assert result.value == []


# -------------------------------------------------------------------
# Site search (Google Custom Search)
# -------------------------------------------------------------------


def test_site_search_without_credentials_returns_direct_link():
    client = internetmedicin_client(api_key=None, cse_id=None)

    result = asyncio.run(client.invoke("huvudvärk"))

    assert result.is_success
    assert result.metadata["degraded"] is True
    (hit,) = result.value
    assert hit.source == Source.INTERNETMEDICIN
    assert hit.url == "https://www.internetmedicin.se/search?q=huvudv%C3%A4rk"
    assert hit.title == "Search Internetmedicin for: huvudvärk"
    assert "Configure Google Custom Search" in hit.snippet


def test_site_search_with_only_api_key_is_still_degraded():
    client = orto_client(api_key="key", cse_id=None)

    result = asyncio.run(client.invoke("knee pain"))

    (hit,) = result.value
    assert hit.url == "https://www.orto.nu/search?q=knee%20pain"
    assert hit.source == Source.ORTO


def test_site_search_queries_custom_search_scoped_to_domain():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "items": [
                    {"title": "Migrän", "link": "https://www.internetmedicin.se/migran", "snippet": "Om migrän"},
                    {"title": "No link"},
                    {"title": "Huvudvärk", "link": "https://www.internetmedicin.se/huvudvark"},
                ]
            },
        )

    result = invoke_with_transport(
        lambda http: internetmedicin_client(api_key="key", cse_id="cse", http_client=http),
        handler,
        "cephalgia",
    )

    assert [hit.title for hit in result.value] == ["Migrän", "Huvudvärk"]
    assert result.value[1].snippet == "No description available"
    params = seen[0].url.params
    assert params["q"] == "cephalgia site:internetmedicin.se"
    assert params["cx"] == "cse"
    assert params["num"] == "5"


def test_site_search_without_items_is_empty_success():
    result = invoke_with_transport(
        lambda http: orto_client(api_key="key", cse_id="cse", http_client=http),
        lambda request: httpx.Response(200, json={"searchInformation": {"totalResults": "0"}}),
        "cephalgia",
    )

    assert result.is_success
    assert result.value == []


def test_site_search_forbidden_is_auth_error():
    result = invoke_with_transport(
        lambda http: orto_client(api_key="bad", cse_id="cse", http_client=http),
        lambda request: httpx.Response(403, json={"error": {"message": "API key not valid"}}),
        "cephalgia",
    )

    assert result.error.code == "auth"
    assert result.error.provider == "orto"
    assert result.error.retryable is False


# -------------------------------------------------------------------
# Error normalization
# -------------------------------------------------------------------


@pytest.mark.parametrize(
    "exc, code, retryable",
    [
        (FakeStatusError(401, "Invalid API key"), "auth", False),
        (FakeStatusError(429, "Slow down"), "rate_limit", True),
        (FakeStatusError(404, "Model not found"), "bad_request", False),
        (FakeGenaiError(503, "Overloaded"), "provider_error", True),
        (Exception("Request timed out"), "timeout", True),
        (Exception("Unauthorized"), "auth", False),
        (Exception("Too many requests"), "rate_limit", True),
        (Exception("Something odd happened"), "unknown", False),
    ],
)
def test_error_normalization(exc, code, retryable):
    error = PubMedClient()._normalize_error(exc, provider="pubmed")

    assert error.code == code
    assert error.retryable is retryable
    assert error.provider == "pubmed"


def test_unknown_error_code_collapses_to_unknown():
    error = NormalizedError(code="exploded", message="x", provider="p")
    assert error.code == "unknown"


def test_backend_result_requires_exactly_one_of_value_or_error():
    with pytest.raises(ValueError):
        BackendResult(provider="p")
    with pytest.raises(ValueError):
        BackendResult(provider="p", value="v", error=NormalizedError(code="auth", message="m", provider="p"))


# -------------------------------------------------------------------
# Translation clients
# -------------------------------------------------------------------


def test_anthropic_translation_uses_first_text_block():
    create = AsyncMock(
        return_value=SimpleNamespace(
            content=[
                SimpleNamespace(type="thinking", thinking="..."),
                SimpleNamespace(type="text", text="  cephalgia, photophobia \n"),
            ]
        )
    )
    client = AnthropicTranslationClient(
        api_key="key", model_name="claude-test", client=SimpleNamespace(messages=SimpleNamespace(create=create))
    )

    result = asyncio.run(client.invoke("bad headache"))

    assert result.value == "cephalgia, photophobia"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 1024
    assert "bad headache" in kwargs["messages"][0]["content"]


def test_anthropic_empty_answer_is_malformed():
    create = AsyncMock(return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text="   ")]))
    client = AnthropicTranslationClient(api_key="key", client=SimpleNamespace(messages=SimpleNamespace(create=create)))

    result = asyncio.run(client.invoke("bad headache"))

    assert result.error.code == "malformed_response"


def test_anthropic_sdk_error_is_normalized():
    create = AsyncMock(side_effect=FakeStatusError(401, "invalid x-api-key"))
    client = AnthropicTranslationClient(api_key="key", client=SimpleNamespace(messages=SimpleNamespace(create=create)))

    result = asyncio.run(client.invoke("bad headache"))

    assert result.error.code == "auth"
    assert result.error.provider == "anthropic"


def test_translation_client_requires_api_key():
    with pytest.raises(ValueError):
        OpenAITranslationClient(api_key="", client=SimpleNamespace())


def test_openai_translation_request_and_decode():
    create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="pyrexia"))])
    )
    client = OpenAITranslationClient(
        api_key="key", client=SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    )

    result = asyncio.run(client.invoke("fever"))

    assert result.value == "pyrexia"
    kwargs = create.await_args.kwargs
    assert kwargs["temperature"] == 0.3
    assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]


def test_openai_without_choices_is_malformed():
    create = AsyncMock(return_value=SimpleNamespace(choices=[]))
    client = OpenAITranslationClient(
        api_key="key", client=SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    )

    result = asyncio.run(client.invoke("fever"))

    assert result.error.code == "malformed_response"


def _gemini_sdk(generate_content: AsyncMock):
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))


def _gemini_response(text: str | None, finish_reason: str = "STOP", grounding_metadata=None):
    parts = [SimpleNamespace(text=text)] if text is not None else []
    return SimpleNamespace(
        candidates=[
            SimpleNamespace(
                content=SimpleNamespace(parts=parts),
                finish_reason=finish_reason,
                grounding_metadata=grounding_metadata,
            )
        ]
    )


def test_gemini_translation_decodes_first_candidate():
    generate = AsyncMock(return_value=_gemini_response("vertigo dizziness\n"))
    client = GeminiTranslationClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("dizzy"))

    assert result.value == "vertigo dizziness"
    assert generate.await_args.kwargs["config"].temperature == 0.2


def test_gemini_translation_cut_off_is_malformed():
    generate = AsyncMock(return_value=_gemini_response(None, finish_reason="MAX_TOKENS"))
    client = GeminiTranslationClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("dizzy"))

    assert result.error.code == "malformed_response"
    assert result.error.retryable is True


def test_gemini_translation_without_candidates_is_malformed():
    generate = AsyncMock(return_value=SimpleNamespace(candidates=[]))
    client = GeminiTranslationClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("dizzy"))

    assert result.error.code == "malformed_response"


# -------------------------------------------------------------------
# Grounded generation
# -------------------------------------------------------------------


def test_gemini_answer_grounded_request_and_citations():
    metadata = SimpleNamespace(
        grounding_chunks=[
            SimpleNamespace(web=SimpleNamespace(uri="https://www.internetmedicin.se/migran", title="internetmedicin.se")),
            SimpleNamespace(web=SimpleNamespace(uri=None, title="missing uri")),
            SimpleNamespace(web=SimpleNamespace(uri="https://example.org", title=None)),
            SimpleNamespace(web=None),
        ],
        web_search_queries=["migrän behandling"],
    )
    generate = AsyncMock(return_value=_gemini_response("Migrän är...", grounding_metadata=metadata))
    client = GeminiAnswerClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("prompt", grounded=True))

    assert result.is_success
    output = result.value
    assert output.text == "Migrän är..."
    assert [(s.title, s.url) for s in output.grounding_sources] == [
        ("internetmedicin.se", "https://www.internetmedicin.se/migran")
    ]
    assert output.search_queries == ("migrän behandling",)
    assert result.metadata["grounded"] is True
    assert result.metadata["grounding_source_count"] == 1

    config = generate.await_args.kwargs["config"]
    assert config.temperature == 0.1
    assert config.max_output_tokens == 8000
    assert len(config.tools) == 1


def test_gemini_answer_without_grounding_metadata_has_no_sources():
    generate = AsyncMock(return_value=_gemini_response("Answer"))
    client = GeminiAnswerClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("prompt", grounded=True))

    assert result.value.grounding_sources == ()
    assert result.value.search_queries == ()


def test_gemini_answer_ungrounded_request_has_no_tools():
    generate = AsyncMock(return_value=_gemini_response("Answer"))
    client = GeminiAnswerClient(api_key="key", client=_gemini_sdk(generate))

    asyncio.run(client.invoke("prompt", grounded=False))

    config = generate.await_args.kwargs["config"]
    assert config.temperature == 0.2
    assert not config.tools


def test_gemini_answer_grounding_rejection_is_capability_unsupported():
    generate = AsyncMock(
        side_effect=FakeGenaiError(400, "400 INVALID_ARGUMENT. Search Grounding is not supported.")
    )
    client = GeminiAnswerClient(api_key="key", model_name="gemini-old", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("prompt", grounded=True))

    assert result.error.code == "capability_unsupported"
    assert result.error.details["model"] == "gemini-old"


def test_gemini_answer_other_bad_request_is_not_capability_unsupported():
    generate = AsyncMock(side_effect=FakeGenaiError(400, "400 INVALID_ARGUMENT. Request contains an invalid argument."))
    client = GeminiAnswerClient(api_key="key", client=_gemini_sdk(generate))

    result = asyncio.run(client.invoke("prompt", grounded=True))

    assert result.error.code == "bad_request"


@pytest.mark.parametrize(
    "exc, expected",
    [
        (FakeGenaiError(400, "Search Grounding is not supported for this model"), True),
        (FakeGenaiError(400, "google_search is not supported"), True),
        (FakeGenaiError(500, "Search Grounding backend failure"), False),
        (FakeGenaiError(400, "API key not valid"), False),
        (Exception("Search Grounding is not supported"), True),
    ],
)
def test_is_grounding_unsupported(exc, expected):
    assert is_grounding_unsupported(exc) is expected
