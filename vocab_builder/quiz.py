"""Multiple-choice quiz over saved words.

State machine::

    idle ──start──▶ generating ──ok──▶ active ──last answer──▶ finished
      ▲                 │                                         │
      └────failure──────┘◀───────────────restart──────────────────┘
"""
from __future__ import annotations

import asyncio
import logging
import math
import random
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Callable

from vocab_builder.errors import InsufficientDataError, VocabError
from vocab_builder.word_provider import generate_quiz_question

if TYPE_CHECKING:
    from vocab_builder.models import QuizQuestion, WordRecord
    from vocab_builder.providers.base import LLMProvider

_log = logging.getLogger("vocab_builder.quiz")

MIN_QUIZ_WORDS = 4
GENERATION_FAILED = "Failed to generate quiz."


class QuizState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ACTIVE = "active"
    FINISHED = "finished"


def shuffled(items: list) -> list:
    copy = list(items)
    random.shuffle(copy)
    return copy


class QuizEngine:
    def __init__(
        self,
        llm: LLMProvider,
        words: Callable[[], list[WordRecord]],
        audience_level: Callable[[], str] = lambda: "5th Grader",
        quiz_size: int = 0,
        auto_start: bool = True,
        delay_correct: float = 1.0,
        delay_incorrect: float = 1.0,
        source: str = "history",
    ):
        self.llm = llm
        self.words = words
        self.audience_level = audience_level
        self.quiz_size = quiz_size
        self.auto_start = auto_start
        self.delay_correct = delay_correct
        self.delay_incorrect = delay_incorrect
        self.source = source

        self.state = QuizState.IDLE
        self.questions: list[QuizQuestion] = []
        self.current_index = 0
        self.answers: dict[int, str] = {}
        self.error: str | None = None
        self.generation_failed = False
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.state is QuizState.ACTIVE and self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def score(self) -> int:
        return sum(
            1 for i, q in enumerate(self.questions)
            if self.answers.get(i) == q.correct_answer
        )

    @property
    def percentage(self) -> int:
        if not self.questions:
            return 0
        return math.floor(self.score / len(self.questions) * 100 + 0.5)

    async def start(self) -> bool:
        """Generate a fresh quiz. Returns True when the quiz became active."""
        if self.state is QuizState.GENERATING:
            return False
        words = self.words()
        if len(words) < MIN_QUIZ_WORDS:
            self.error = str(InsufficientDataError(len(words), MIN_QUIZ_WORDS, self.source))
            self.state = QuizState.IDLE
            return False

        self._cancel_pending()
        self._generation += 1
        generation = self._generation
        self.state = QuizState.GENERATING
        self.error = None
        self.generation_failed = False
        self.answers = {}
        self.current_index = 0
        self.questions = []

        pool = shuffled(words)
        selected = pool[: self.quiz_size] if self.quiz_size > 0 else pool
        level = self.audience_level()
        _log.info("Generating %d questions from %d words", len(selected), len(pool))
        try:
            generated = await asyncio.gather(
                *(generate_quiz_question(self.llm, w, pool, level) for w in selected)
            )
        except VocabError as e:
            failure = str(e)
        except Exception:
            _log.exception("Quiz generation failed")
            failure = GENERATION_FAILED
        else:
            failure = None

        if generation != self._generation:
            # Restarted while generating; a newer quiz owns the state
            return False
        if failure is not None:
            return self._fail(failure)
        self.questions = [replace(q, options=shuffled(q.options)) for q in generated]
        self.state = QuizState.ACTIVE
        return True

    def _fail(self, message: str) -> bool:
        _log.warning("Quiz generation failed: %s", message)
        self.error = message
        self.generation_failed = True
        self.questions = []
        self.state = QuizState.IDLE
        return False

    async def maybe_auto_start(self) -> bool:
        """Start on its own once enough words exist and no failure is pending."""
        if (
            self.auto_start
            and self.state is QuizState.IDLE
            and not self.generation_failed
            and len(self.words()) >= MIN_QUIZ_WORDS
        ):
            return await self.start()
        return False

    async def answer(self, option: str) -> bool | None:
        """Record *option* for the current question.

        Returns whether it was correct, or ``None`` if the question was
        already answered (or no quiz is running). The engine moves on after
        a short pause.
        """
        question = self.current_question
        if question is None:
            return None
        index = self.current_index
        if index in self.answers:
            return None
        if option not in question.options:
            raise ValueError(f"{option!r} is not an option of question {index + 1}")

        self.answers[index] = option
        correct = option == question.correct_answer
        delay = self.delay_correct if correct else self.delay_incorrect
        task = asyncio.create_task(self._advance_after(index, delay))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return correct

    async def _advance_after(self, index: int, delay: float) -> None:
        await asyncio.sleep(delay)
        if self.state is not QuizState.ACTIVE or self.current_index != index:
            return
        if index < len(self.questions) - 1:
            self.current_index = index + 1
        else:
            self.state = QuizState.FINISHED
            _log.info("Quiz finished: %d/%d (%d%%)",
                      self.score, len(self.questions), self.percentage)

    async def restart(self) -> None:
        self._cancel_pending()
        self._generation += 1
        self.state = QuizState.IDLE
        self.questions = []
        self.answers = {}
        self.current_index = 0
        self.error = None
        self.generation_failed = False
        if self.auto_start:
            await self.start()

    async def settle(self) -> None:
        """Wait for any pending advance to run."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _cancel_pending(self) -> None:
        for t in list(self._tasks):
            t.cancel()
        self._tasks.clear()

    def to_dict(self) -> dict:
        data: dict = {
            "state": self.state.value,
            "error": self.error,
            "total": len(self.questions),
            "currentIndex": self.current_index,
            "wordCount": len(self.words()),
            "minWords": MIN_QUIZ_WORDS,
        }
        question = self.current_question
        if question is not None:
            answered = self.answers.get(self.current_index)
            current = {
                "question": question.question,
                "options": list(question.options),
                "word": question.word,
                "userAnswer": answered,
            }
            if answered is not None:
                current["correctAnswer"] = question.correct_answer
                current["explanation"] = question.explanation
            data["current"] = current
        if self.state is QuizState.FINISHED:
            data["score"] = self.score
            data["percentage"] = self.percentage
        return data
