from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def parse(cls, value: str) -> Difficulty:
        """Match a difficulty label case-insensitively ("hard" -> HARD)."""
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"unknown difficulty: {value!r}")


@dataclass
class WordRecord:
    word: str
    definition: str
    example_sentences: list[str]
    simplified_explanation: str
    difficulty: Difficulty
    part_of_speech: str = ""
    ipa: str = ""
    origin: str = ""
    pronunciation_audio: str | None = None  # base64 PCM, fetched lazily
    audio_buffer: Any = field(default=None, repr=False, compare=False)  # decoded, never stored

    @property
    def key(self) -> str:
        return self.word.lower()

    def with_partial(self, partial: PartialWordData) -> WordRecord:
        return replace(
            self,
            example_sentences=list(partial.example_sentences),
            simplified_explanation=partial.simplified_explanation,
        )

    def to_dict(self) -> dict:
        data = {
            "word": self.word,
            "definition": self.definition,
            "exampleSentences": list(self.example_sentences),
            "simplifiedExplanation": self.simplified_explanation,
            "difficulty": self.difficulty.value,
            "partOfSpeech": self.part_of_speech,
            "ipa": self.ipa,
            "origin": self.origin,
        }
        if self.pronunciation_audio:
            data["pronunciationAudio"] = self.pronunciation_audio
        return data

    @classmethod
    def from_dict(cls, data: dict) -> WordRecord:
        return cls(
            word=data["word"],
            definition=data["definition"],
            example_sentences=list(data["exampleSentences"]),
            simplified_explanation=data["simplifiedExplanation"],
            difficulty=Difficulty.parse(data["difficulty"]),
            part_of_speech=data.get("partOfSpeech", ""),
            ipa=data.get("ipa", ""),
            origin=data.get("origin", ""),
            pronunciation_audio=data.get("pronunciationAudio") or None,
        )


@dataclass
class PartialWordData:
    example_sentences: list[str]
    simplified_explanation: str


@dataclass
class QuizQuestion:
    question: str
    options: list[str]
    correct_answer: str
    word: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "word": self.word,
            "explanation": self.explanation,
        }
