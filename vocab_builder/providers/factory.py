"""Build the configured LLM / TTS back-ends."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vocab_builder.config import Settings
    from vocab_builder.providers.base import LLMProvider, TTSProvider


def build_llm(s: Settings) -> LLMProvider:
    if s.llm_provider == "gemini":
        from vocab_builder.providers.llm_gemini import GeminiProvider
        return GeminiProvider(model=s.gemini_model)
    elif s.llm_provider == "ollama":
        from vocab_builder.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.ollama_model)
    elif s.llm_provider == "anthropic":
        from vocab_builder.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=s.anthropic_model)
    elif s.llm_provider == "openai":
        from vocab_builder.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=s.openai_model)
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def build_tts(s: Settings) -> TTSProvider:
    if s.tts_provider == "gemini":
        from vocab_builder.providers.tts_gemini import GeminiTTSProvider
        return GeminiTTSProvider(model=s.gemini_tts_model, voice=s.gemini_voice)
    elif s.tts_provider == "elevenlabs":
        from vocab_builder.providers.tts_elevenlabs import ElevenLabsProvider
        return ElevenLabsProvider(voice_id=s.elevenlabs_voice, model_id=s.elevenlabs_model)
    raise ValueError(f"Unknown TTS provider: {s.tts_provider}")
