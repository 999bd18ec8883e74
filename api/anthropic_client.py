import time
from typing import Any

import anthropic

from api.translation_client import (
    TRANSLATION_SYSTEM_PROMPT,
    TranslationClient,
    require_terms,
    translation_user_prompt,
)
from models.backend_result import BackendResult


class AnthropicTranslationClient(TranslationClient):
    """Medical term translation through the Anthropic Messages API."""

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model_name: str = "claude-sonnet-4-5",
        client: Any = None,
        **kwargs: Any,
    ):
        super().__init__(api_key, model_name, **kwargs)
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=self.timeout_s)

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        start_time = time.time()
        try:
            response = await self.client.messages.create(
                model=params.get("model", self.model_name),
                max_tokens=params.get("max_tokens", 1024),
                system=TRANSLATION_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": translation_user_prompt(query)}],
            )
            text = next(
                (block.text for block in response.content or [] if getattr(block, "type", None) == "text"),
                None,
            )
            terms = require_terms(text, self.provider_name)
            return self._success(terms, start_time, model=self.model_name)
        except Exception as e:
            return self._failure(e, start_time)
