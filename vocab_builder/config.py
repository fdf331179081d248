from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path

_log = logging.getLogger("vocab_builder.config")

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "gemini",
    "gemini_model": "gemini-2.5-flash",
    "ollama_model": "qwen3:8b",
    "openai_model": "gpt-4o-mini",
    "anthropic_model": "claude-sonnet-4-20250514",
    "tts_provider": "gemini",
    "gemini_tts_model": "gemini-2.5-flash-preview-tts",
    "gemini_voice": "Kore",
    "elevenlabs_model": "eleven_flash_v2_5",
    "elevenlabs_voice": "lfBVYbXnblkOddWFfEIg",
    "ollama_url": "http://localhost:11434",
    "db_path": "vocab.db",
    "audience_level": "5th Grader",
    "quiz_size": 0,
    "quiz_source": "history",
    "quiz_auto_start": True,
    "answer_delay_correct": 1.0,
    "answer_delay_incorrect": 1.0,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    gemini_model: str = DEFAULTS["gemini_model"]
    ollama_model: str = DEFAULTS["ollama_model"]
    openai_model: str = DEFAULTS["openai_model"]
    anthropic_model: str = DEFAULTS["anthropic_model"]
    tts_provider: str = DEFAULTS["tts_provider"]
    gemini_tts_model: str = DEFAULTS["gemini_tts_model"]
    gemini_voice: str = DEFAULTS["gemini_voice"]
    elevenlabs_model: str = DEFAULTS["elevenlabs_model"]
    elevenlabs_voice: str = DEFAULTS["elevenlabs_voice"]
    ollama_url: str = DEFAULTS["ollama_url"]
    db_path: str = DEFAULTS["db_path"]
    audience_level: str = DEFAULTS["audience_level"]
    quiz_size: int = DEFAULTS["quiz_size"]  # 0 = every available word
    quiz_source: str = DEFAULTS["quiz_source"]  # history | bookmarks
    quiz_auto_start: bool = DEFAULTS["quiz_auto_start"]
    answer_delay_correct: float = DEFAULTS["answer_delay_correct"]
    answer_delay_incorrect: float = DEFAULTS["answer_delay_incorrect"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "gemini_model": self.gemini_model,
            "ollama_model": self.ollama_model,
            "openai_model": self.openai_model,
            "anthropic_model": self.anthropic_model,
            "tts_provider": self.tts_provider,
            "gemini_tts_model": self.gemini_tts_model,
            "gemini_voice": self.gemini_voice,
            "elevenlabs_model": self.elevenlabs_model,
            "elevenlabs_voice": self.elevenlabs_voice,
            "ollama_url": self.ollama_url,
            "db_path": self.db_path,
            "audience_level": self.audience_level,
            "quiz_size": self.quiz_size,
            "quiz_source": self.quiz_source,
            "quiz_auto_start": self.quiz_auto_start,
            "answer_delay_correct": self.answer_delay_correct,
            "answer_delay_incorrect": self.answer_delay_incorrect,
        }


CHOICES = {
    "llm_provider": ("gemini", "ollama", "openai", "anthropic"),
    "tts_provider": ("gemini", "elevenlabs"),
    "quiz_source": ("history", "bookmarks"),
}

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


def coerce_setting(key: str, value):
    """Convert *value* to the type of ``DEFAULTS[key]``.

    Raises ValueError when it cannot be converted or is out of range.
    """
    default = DEFAULTS[key]
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE + _FALSE:
            return value.strip().lower() in _TRUE
        raise ValueError(f"{key} must be true or false, got {value!r}")

    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"{key} must be a number, got {value!r}")
        try:
            number = float(value)
        except ValueError:
            raise ValueError(f"{key} must be a number, got {value!r}") from None
        if not math.isfinite(number) or number < 0:
            raise ValueError(f"{key} must be a non-negative number, got {value!r}")
        if isinstance(default, int):
            if not number.is_integer():
                raise ValueError(f"{key} must be a whole number, got {value!r}")
            return int(number)
        return number

    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    value = value.strip()
    if key in CHOICES and value not in CHOICES[key]:
        raise ValueError(f"{key} must be one of {', '.join(CHOICES[key])}")
    return value


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        filtered = {}
        for k, v in raw.items():
            if k not in DEFAULTS:
                continue
            try:
                filtered[k] = coerce_setting(k, v)
            except ValueError as e:
                _log.warning("Ignoring config.json value: %s", e)
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
