from __future__ import annotations

import logging

from vocab_builder.providers.base import TTSProvider
from vocab_builder.providers.llm_gemini import _api_key

log = logging.getLogger("vocab_builder.tts")


class GeminiTTSProvider(TTSProvider):
    def __init__(self, model: str = "gemini-2.5-flash-preview-tts", voice: str = "Kore"):
        from google import genai
        self.client = genai.Client(api_key=_api_key())
        self.model = model
        self.voice = voice

    async def synthesize(self, text: str) -> bytes:
        from google.genai import types

        resp = await self.client.aio.models.generate_content(
            model=self.model,
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice),
                    ),
                ),
            ),
        )
        # Audio arrives as inline PCM on the first part of the first candidate
        try:
            data = resp.candidates[0].content.parts[0].inline_data.data
        except (AttributeError, IndexError, TypeError):
            data = None
        log.info("Synthesized %r: %d bytes", text, len(data or b""))
        return data or b""

    def name(self) -> str:
        return f"gemini-tts/{self.voice}"
