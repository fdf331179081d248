from __future__ import annotations

import os

from vocab_builder.providers.base import LLMProvider


def _response_format(schema: dict) -> dict:
    # Non-strict: strict mode would require every property and no extras
    return {
        "type": "json_schema",
        "json_schema": {"name": "vocab_response", "schema": schema, "strict": False},
    }


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini"):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
        )
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, schema: dict | None = None) -> str:
        extra = {"response_format": _response_format(schema)} if schema is not None else {}
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **extra,
        )
        choice = resp.choices[0].message
        if getattr(choice, "refusal", None):
            raise RuntimeError(f"model refused: {choice.refusal}")
        return choice.content or ""

    def name(self) -> str:
        return f"openai/{self.model}"
