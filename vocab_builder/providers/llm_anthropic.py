from __future__ import annotations

import json
import logging
import os

from vocab_builder.providers.base import LLMProvider

log = logging.getLogger("vocab_builder.llm")

TOOL_NAME = "record_answer"


class AnthropicProvider(LLMProvider):
    """Claude back-end. Schema requests are answered through a forced tool call
    whose input is the structured payload."""

    def __init__(self, model: str = "claude-sonnet-4-20250514"):
        import anthropic
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        )
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, schema: dict | None = None) -> str:
        kwargs: dict = {}
        if schema is not None:
            kwargs["tools"] = [{
                "name": TOOL_NAME,
                "description": "Record the answer in the requested JSON structure.",
                "input_schema": schema,
            }]
            kwargs["tool_choice"] = {"type": "tool", "name": TOOL_NAME}

        message = await self.client.messages.create(
            model=self.model,
            max_tokens=2048,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        for block in message.content:
            if block.type == "tool_use":
                return json.dumps(block.input)
        text = "".join(b.text for b in message.content if b.type == "text")
        if schema is not None:
            log.warning("%s answered without the tool, falling back to text", self.model)
        return text

    def name(self) -> str:
        return f"anthropic/{self.model}"
