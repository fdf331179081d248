"""Shared test fixtures."""
from __future__ import annotations

import json
import re

import pytest

from vocab_builder.db import Database
from vocab_builder.history import HistoryStore
from vocab_builder.models import Difficulty, WordRecord
from vocab_builder.prompts import PARTIAL_WORD_SCHEMA, QUIZ_QUESTION_SCHEMA, WORD_DATA_SCHEMA

# 16384, -16384 as 16-bit little-endian PCM
FAKE_PCM = b"\x00\x40\x00\xc0"


def make_record(word: str, explanation: str | None = None, **kwargs) -> WordRecord:
    return WordRecord(
        word=word,
        definition=kwargs.pop("definition", f"the meaning of {word}"),
        example_sentences=kwargs.pop("example_sentences", [f"I saw {word}.", f"They like {word}."]),
        simplified_explanation=explanation or f"{word} explained simply",
        difficulty=kwargs.pop("difficulty", Difficulty.MEDIUM),
        **kwargs,
    )


class FakeLLM:
    """Answers by schema: word data, partial data or a quiz question.

    Responses echo the word and audience level from the prompt so tests can
    see which request produced what.
    """

    def __init__(self):
        self.prompts: list[str] = []
        self.fail_words: set[str] = set()
        self.garbage_words: set[str] = set()
        self.quiz_override: dict | None = None

    async def generate(self, prompt: str, temperature: float = 0.7, schema: dict | None = None) -> str:
        self.prompts.append(prompt)
        word = re.search(r'the word "([^"]+)"', prompt).group(1)
        level_match = re.search(r"for a (.+?) student", prompt)
        level = level_match.group(1) if level_match else ""

        if word in self.fail_words:
            raise ConnectionError(f"lookup of {word} failed")
        if word in self.garbage_words:
            return "Sorry, I cannot help with that."

        if schema is WORD_DATA_SCHEMA:
            return json.dumps({
                "word": word,
                "partOfSpeech": "noun",
                "ipa": f"/{word}/",
                "definition": f"the meaning of {word}",
                "exampleSentences": [f"I saw {word}.", f"They like {word}."],
                "simplifiedExplanation": f"{word} for a {level}",
                "difficulty": "hard",
                "origin": "Latin",
            })
        if schema is PARTIAL_WORD_SCHEMA:
            return json.dumps({
                "exampleSentences": [f"{level}: {word} one.", f"{level}: {word} two."],
                "simplifiedExplanation": f"{word} for a {level}",
            })
        if schema is QUIZ_QUESTION_SCHEMA:
            if self.quiz_override is not None:
                return json.dumps(self.quiz_override)
            correct = f"the meaning of {word}"
            return json.dumps({
                "question": f"What is the definition of {word}?",
                "options": [correct, "a kind of fish", "to run quickly", "very old"],
                "correctAnswer": correct,
            })
        raise AssertionError("unexpected schema")

    def name(self) -> str:
        return "fake-llm"

    @property
    def call_count(self) -> int:
        return len(self.prompts)


class FakeTTS:
    def __init__(self, pcm: bytes = FAKE_PCM):
        self.pcm = pcm
        self.calls: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        return self.pcm

    def name(self) -> str:
        return "fake-tts"


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_tts():
    return FakeTTS()


@pytest.fixture
def sample_records():
    """Five records, enough for a quiz."""
    return [
        make_record("ubiquitous"),
        make_record("ephemeral"),
        make_record("candid"),
        make_record("meticulous"),
        make_record("benevolent"),
    ]


@pytest.fixture
def store():
    return HistoryStore()


@pytest.fixture
def populated_store(store, sample_records):
    store.add_to_history(sample_records)
    return store
