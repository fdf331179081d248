from __future__ import annotations

import asyncio
import os

from vocab_builder.providers.base import TTSProvider


class ElevenLabsProvider(TTSProvider):
    def __init__(self, voice_id: str = "lfBVYbXnblkOddWFfEIg", model_id: str = "eleven_flash_v2_5"):
        from elevenlabs import ElevenLabs
        self.client = ElevenLabs(
            api_key=os.environ.get("ELEVEN_LABS_API_KEY", ""),
        )
        self.voice_id = voice_id
        self.model_id = model_id

    async def synthesize(self, text: str) -> bytes:
        def _generate() -> bytes:
            audio = self.client.text_to_speech.convert(
                voice_id=self.voice_id,
                text=text,
                model_id=self.model_id,
                output_format="pcm_24000",
            )
            # audio is a generator of raw PCM chunks
            return b"".join(audio)

        return await asyncio.get_running_loop().run_in_executor(None, _generate)

    def name(self) -> str:
        return f"elevenlabs/{self.voice_id}"
