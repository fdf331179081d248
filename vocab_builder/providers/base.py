from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.7, schema: dict | None = None) -> str:
        """Return the raw model text. *schema* is a JSON-schema object the
        response should conform to; back-ends without native structured
        output rely on the format instructions in the prompt."""
        ...

    @abstractmethod
    def name(self) -> str:
        ...


class TTSProvider(ABC):
    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Return 16-bit little-endian mono PCM at 24 kHz (empty if none)."""
        ...

    @abstractmethod
    def name(self) -> str:
        ...
