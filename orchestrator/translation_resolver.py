"""
TranslationResolver - turns a symptom description into medical terms.

Exactly one path runs per request:
1. the first provider (Anthropic, OpenAI, Google) that has a credential, called once;
2. the local keyword mapper when no provider is configured.

A failing provider is not replaced by the next paid provider; the error propagates.
"""

from typing import Callable

from api.anthropic_client import AnthropicTranslationClient
from api.google_gemini_client import GeminiTranslationClient
from api.openai_client import OpenAITranslationClient
from api.translation_client import TranslationClient
from config.config import Config
from models.search_models import TranslatedTerms, TranslationProvider
from orchestrator.errors import BackendCallError, require_text
from utils.logger import get_logger

logger = get_logger(__name__)

PROVIDER_PRIORITY: tuple[TranslationProvider, ...] = (
    TranslationProvider.ANTHROPIC,
    TranslationProvider.OPENAI,
    TranslationProvider.GEMINI,
)

# Checked in order against the lowercased query; every hit is kept.
LAYMAN_TO_MEDICAL: tuple[tuple[str, str], ...] = (
    ("headache", "cephalgia"),
    ("light sensitivity", "photophobia"),
    ("nausea", "nausea"),
    ("vomiting", "emesis"),
    ("fever", "pyrexia"),
    ("chest pain", "chest pain angina"),
    ("shortness of breath", "dyspnea"),
    ("dizzy", "vertigo dizziness"),
    ("stomach pain", "abdominal pain"),
    ("heart racing", "tachycardia palpitations"),
)

_CREDENTIALS: dict[TranslationProvider, Callable[[Config], str | None]] = {
    TranslationProvider.ANTHROPIC: lambda c: c.anthropic_api_key,
    TranslationProvider.OPENAI: lambda c: c.openai_api_key,
    TranslationProvider.GEMINI: lambda c: c.google_api_key,
}

_FACTORIES: dict[TranslationProvider, Callable[[Config], TranslationClient]] = {
    TranslationProvider.ANTHROPIC: lambda c: AnthropicTranslationClient(
        api_key=c.anthropic_api_key, model_name=c.anthropic_model, timeout_s=c.request_timeout_s
    ),
    TranslationProvider.OPENAI: lambda c: OpenAITranslationClient(
        api_key=c.openai_api_key, model_name=c.openai_model, timeout_s=c.request_timeout_s
    ),
    TranslationProvider.GEMINI: lambda c: GeminiTranslationClient(
        api_key=c.google_api_key, model_name=c.gemini_model, timeout_s=c.request_timeout_s
    ),
}


def select_translation_provider(config: Config) -> TranslationProvider | None:
    """First provider in priority order that has a credential, or None."""
    for provider in PROVIDER_PRIORITY:
        if _CREDENTIALS[provider](config):
            return provider
    return None


def keyword_fallback(query: str) -> str:
    """Map common layman phrases to medical terms; the query itself when nothing matches."""
    lowered = query.lower()
    terms = [medical for layman, medical in LAYMAN_TO_MEDICAL if layman in lowered]
    return ", ".join(terms) if terms else query


class TranslationResolver:
    def __init__(
        self,
        config: Config,
        clients: dict[TranslationProvider, TranslationClient] | None = None,
    ):
        """
        Args:
            config: Pipeline configuration; credential presence picks the provider
            clients: Prebuilt clients by provider; otherwise built from config on every call
        """
        self.config = config
        self._clients = dict(clients or {})

    def _client_for(self, provider: TranslationProvider) -> TranslationClient:
        # SDK clients hold loop-bound connection pools, so config-built ones are not cached
        if provider in self._clients:
            return self._clients[provider]
        return _FACTORIES[provider](self.config)

    async def resolve(self, query: str) -> TranslatedTerms:
        """
        Translate ``query`` into medical terms.

        Raises:
            QueryValidationError: blank query
            BackendCallError: the selected provider failed
        """
        query = require_text(query)
        provider = select_translation_provider(self.config)

        if provider is None:
            logger.info(
                "No translation credential configured, using keyword fallback",
                extra={"extra_fields": {"credentials": self.config.credential_summary()}},
            )
            return TranslatedTerms(text=keyword_fallback(query), provider=TranslationProvider.KEYWORD_FALLBACK)

        logger.info(
            f"Translating with {provider.value}",
            extra={"extra_fields": {"provider": provider.value, "credentials": self.config.credential_summary()}},
        )
        result = await self._client_for(provider).invoke(query)
        if result.is_error:
            raise BackendCallError(result.error, step="translation")

        return TranslatedTerms(text=result.value, provider=provider)
