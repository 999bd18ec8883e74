import time
from typing import Any

import openai

from api.base_client import BackendClientError
from api.translation_client import (
    TRANSLATION_SYSTEM_PROMPT,
    TranslationClient,
    require_terms,
    translation_user_prompt,
)
from models.backend_result import BackendResult


class OpenAITranslationClient(TranslationClient):
    """Medical term translation through OpenAI Chat Completions."""

    provider_name = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", client: Any = None, **kwargs: Any):
        super().__init__(api_key, model_name, **kwargs)
        self.client = client or openai.AsyncOpenAI(api_key=api_key, timeout=self.timeout_s)

    async def invoke(self, query: str, **params: Any) -> BackendResult:
        start_time = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=params.get("model", self.model_name),
                messages=[
                    {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
                    {"role": "user", "content": translation_user_prompt(query)},
                ],
                max_tokens=params.get("max_tokens", 1024),
                temperature=params.get("temperature", 0.3),
            )
            if not response.choices:
                raise BackendClientError("malformed_response", "OpenAI response has no choices")
            terms = require_terms(response.choices[0].message.content, self.provider_name)
            return self._success(terms, start_time, model=self.model_name)
        except Exception as e:
            return self._failure(e, start_time)
