"""
Google Gemini text provider — uses the google-genai SDK async client.

One GeminiProvider per model id; the chain builder shares a single
genai.Client between them since they all use the same key.
"""
from __future__ import annotations

import logging
from typing import Optional

from google import genai
from google.genai import types as genai_types

import config
from providers.base import TextProvider

logger = logging.getLogger(__name__)


class GeminiProvider(TextProvider):

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        client: Optional[genai.Client] = None,
    ):
        self.name     = "google"
        self.model_id = model
        self._client  = client or genai.Client(api_key=api_key)

    async def _generate(self, prompt: str) -> Optional[str]:
        gen_config = genai_types.GenerateContentConfig(
            temperature=config.GENERATION_TEMPERATURE,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
        )

        response = await self._client.aio.models.generate_content(
            model=self.model_id,
            contents=prompt,
            config=gen_config,
        )

        usage = getattr(response, "usage_metadata", None)
        if usage is not None:
            logger.debug(
                "[%s] tokens in=%s out=%s",
                self.full_name,
                getattr(usage, "prompt_token_count", "?"),
                getattr(usage, "candidates_token_count", "?"),
            )
        return response.text
