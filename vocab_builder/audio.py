"""Pronunciation audio decoding and WAV framing."""
from __future__ import annotations

import base64
import io
import wave
from typing import Callable

import numpy as np

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # 16-bit

# Anything that can play a decoded buffer: (samples, sample_rate) -> None
AudioSink = Callable[[np.ndarray, int], None]


def decode_pcm(payload: str) -> bytes:
    return base64.b64decode(payload)


def decode_audio(payload: str, channels: int = CHANNELS) -> np.ndarray:
    """Decode base64 16-bit little-endian PCM into float32 samples in [-1, 1].

    Mono audio comes back as a 1-D array; multi-channel audio as
    ``(frames, channels)``.
    """
    raw = decode_pcm(payload)
    raw = raw[: len(raw) - len(raw) % (SAMPLE_WIDTH * channels)]
    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels)
    return samples


def pcm_to_wav(pcm: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> bytes:
    """Wrap raw PCM in a WAV container so a browser can play it."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(channels)
        w.setsampwidth(SAMPLE_WIDTH)
        w.setframerate(sample_rate)
        w.writeframes(pcm)
    return buf.getvalue()


def discard(samples: np.ndarray, sample_rate: int) -> None:
    """Sink for headless use: decoding still happens, nothing is played."""
