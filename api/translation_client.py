from abc import abstractmethod
from typing import Any

from api.base_client import BackendClientError, BaseBackendClient
from models.backend_result import BackendResult

TRANSLATION_SYSTEM_PROMPT = (
    "You are a medical terminology expert. Convert a layman's description of symptoms "
    "into precise medical terms, conditions and likely diagnoses. "
    "Return ONLY the medical terms as a short comma-separated list, no explanations."
)


def translation_user_prompt(query: str) -> str:
    return f'User description: "{query}"\n\nMedical terms:'


def require_terms(text: str | None, provider: str) -> str:
    """Strip model output and reject empty answers."""
    terms = (text or "").strip()
    if not terms:
        raise BackendClientError("malformed_response", f"{provider} returned no medical terms")
    return terms


class TranslationClient(BaseBackendClient):
    """A backend that turns a symptom description into medical terms."""

    def __init__(self, api_key: str, model_name: str, **kwargs: Any):
        super().__init__(**kwargs)
        if not api_key:
            raise ValueError(f"API key is required for {self.provider_name}")
        self.api_key = api_key
        self.model_name = model_name

    @abstractmethod
    async def invoke(self, query: str, **params: Any) -> BackendResult:
        """Return a BackendResult whose value is the non-empty terms string."""
