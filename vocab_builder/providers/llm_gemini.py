from __future__ import annotations

import logging
import os
import time

from vocab_builder.providers.base import LLMProvider

log = logging.getLogger("vocab_builder.llm")


def _api_key() -> str:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY", "")


class GeminiProvider(LLMProvider):
    def __init__(self, model: str = "gemini-2.5-flash"):
        from google import genai
        self.client = genai.Client(api_key=_api_key())
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, schema: dict | None = None) -> str:
        from google.genai import types

        extra: dict = {}
        if schema is not None:
            extra = {"response_mime_type": "application/json", "response_json_schema": schema}
        config = types.GenerateContentConfig(temperature=temperature, **extra)

        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        t0 = time.monotonic()
        resp = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        text = (resp.text or "").strip()
        log.info("── RESPONSE (%.1fs) ──\n%s", time.monotonic() - t0, text)
        return text

    def name(self) -> str:
        return f"gemini/{self.model}"
