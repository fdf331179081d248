"""Fetch word data, quiz questions and pronunciations from the model back-ends.

Every call is stateless: callers own caching. Responses are parsed into typed
records at this boundary; anything that does not match the expected shape
raises :class:`FormatError` and is not retried.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from typing import TYPE_CHECKING

from vocab_builder.errors import FormatError, NoAudioError, ProviderError, VocabError
from vocab_builder.models import Difficulty, PartialWordData, QuizQuestion, WordRecord
from vocab_builder.prompts import (
    PARTIAL_WORD_PROMPT,
    PARTIAL_WORD_SCHEMA,
    QUIZ_QUESTION_PROMPT,
    QUIZ_QUESTION_SCHEMA,
    WORD_DATA_PROMPT,
    WORD_DATA_SCHEMA,
    format_word_list,
)

if TYPE_CHECKING:
    from vocab_builder.providers.base import LLMProvider, TTSProvider

_log = logging.getLogger("vocab_builder.words")

QUIZ_FORMAT_MESSAGE = "Failed to generate a valid quiz question."
OPTION_COUNT = 4


def _extract_json(text: str) -> dict | None:
    """Extract a JSON object from a model response.

    Schema-constrained back-ends return bare JSON; the others tend to wrap it
    in a code fence or surround it with prose. ``<think>`` blocks are dropped
    first. Falls back to the *last* balanced ``{…}`` block that parses.
    """
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()

    try:
        data = json.loads(text)
        return data if isinstance(data, dict) else None
    except json.JSONDecodeError:
        pass

    m = re.search(r"```(?:json)?\s*\n?({.*?})\s*\n?```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    for candidate in reversed(_find_json_objects(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def _find_json_objects(text: str) -> list[str]:
    """Find balanced top-level ``{…}`` substrings in *text*."""
    results: list[str] = []
    i = 0
    while i < len(text):
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        in_str = False
        escape = False
        for j in range(i, len(text)):
            ch = text[j]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    results.append(text[i : j + 1])
                    i = j + 1
                    break
        else:
            # Unbalanced, skip this opening brace
            i += 1
    return results


def _is_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_sentences(data: dict) -> str | None:
    sentences = data.get("exampleSentences")
    if not isinstance(sentences, list) or not all(_is_text(s) for s in sentences):
        return "exampleSentences must be a list of strings"
    if len(sentences) < 2:
        return f"need at least 2 example sentences (got {len(sentences)})"
    data["exampleSentences"] = [s.strip() for s in sentences]
    return None


def _validate_word_data(data: dict) -> str | None:
    """Validate a word-data response in place.

    Returns ``None`` when valid, otherwise a reason string.
    """
    missing = {f for f in WORD_DATA_SCHEMA["required"] if f not in data}
    if missing:
        return f"missing fields: {', '.join(sorted(missing))}"
    for key in ("word", "definition", "simplifiedExplanation"):
        if not _is_text(data[key]):
            return f"{key} must be a non-empty string"
    reason = _validate_sentences(data)
    if reason:
        return reason
    try:
        data["difficulty"] = Difficulty.parse(data["difficulty"]).value
    except ValueError:
        return f"difficulty must be Easy, Medium or Hard (got {data['difficulty']!r})"
    for key in ("partOfSpeech", "ipa", "origin"):
        if not isinstance(data.get(key, ""), str):
            data[key] = ""
    return None


def _validate_partial(data: dict) -> str | None:
    if not _is_text(data.get("simplifiedExplanation")):
        return "simplifiedExplanation must be a non-empty string"
    return _validate_sentences(data)


_LETTER_PREFIX = re.compile(r"^[A-Da-d][).:]\s+")


def _same_text(a: str, b: str) -> bool:
    return " ".join(a.split()).lower() == " ".join(b.split()).lower()


def _validate_quiz_question(data: dict, definition: str | None = None) -> str | None:
    """Validate a quiz response in place and resolve the correct answer.

    Accepts a correct answer that differs from its option only by case,
    surrounding whitespace or a letter prefix, or that is the option's letter.
    With *definition*, exactly one option must be that definition and it must
    be the correct answer.
    """
    missing = {f for f in QUIZ_QUESTION_SCHEMA["required"] if f not in data}
    if missing:
        return f"missing fields: {', '.join(sorted(missing))}"
    if not _is_text(data["question"]):
        return "question must be a non-empty string"

    options = data["options"]
    if not isinstance(options, list) or not all(_is_text(o) for o in options):
        return "options must be a list of strings"
    if len(options) != OPTION_COUNT:
        return f"options must be list of {OPTION_COUNT} (got {len(options)})"
    options = [_LETTER_PREFIX.sub("", o.strip()) for o in options]
    if len({o.lower() for o in options}) != OPTION_COUNT:
        return f"duplicate options: {options}"
    data["options"] = options

    answer = data["correctAnswer"]
    if not _is_text(answer):
        return "correctAnswer must be a non-empty string"
    answer = answer.strip()
    if re.fullmatch(r"[A-Da-d]", answer):
        answer = options[ord(answer.upper()) - ord("A")]
    answer = _LETTER_PREFIX.sub("", answer)
    match = next((o for o in options if o.lower() == answer.lower()), None)
    if match is None:
        return f"correctAnswer {answer!r} is not one of the options"
    if definition is not None:
        defining = [o for o in options if _same_text(o, definition)]
        if len(defining) != 1:
            return f"options must contain the definition {definition!r} exactly once"
        if match != defining[0]:
            return f"correctAnswer {match!r} is not the definition {definition!r}"
    data["correctAnswer"] = match
    return None


async def _request_json(llm: LLMProvider, prompt: str, schema: dict, temperature: float) -> dict:
    try:
        response = await llm.generate(prompt, temperature=temperature, schema=schema)
    except VocabError:
        raise
    except Exception as e:
        _log.warning("%s request failed: %s", llm.name(), e)
        raise ProviderError(f"The language model request failed: {e}") from e

    data = _extract_json(response or "")
    if data is None:
        _log.error("Failed to parse JSON response: %.300s", response)
        raise FormatError(reason="no JSON object in response")
    return data


async def fetch_word_data(llm: LLMProvider, word: str, audience_level: str) -> WordRecord:
    prompt = WORD_DATA_PROMPT.format(word=word, audience_level=audience_level)
    data = await _request_json(llm, prompt, WORD_DATA_SCHEMA, temperature=0.3)
    reason = _validate_word_data(data)
    if reason:
        _log.error("Word data for %r rejected: %s", word, reason)
        raise FormatError(reason=reason)
    _log.info("Fetched %r (%s)", data["word"], data["difficulty"])
    return WordRecord.from_dict(data)


async def fetch_partial_word_data(llm: LLMProvider, word: str, audience_level: str) -> PartialWordData:
    """Re-request only the audience-dependent fields of *word*."""
    prompt = PARTIAL_WORD_PROMPT.format(word=word, audience_level=audience_level)
    data = await _request_json(llm, prompt, PARTIAL_WORD_SCHEMA, temperature=0.5)
    reason = _validate_partial(data)
    if reason:
        _log.error("Partial data for %r rejected: %s", word, reason)
        raise FormatError(reason=reason)
    return PartialWordData(
        example_sentences=data["exampleSentences"],
        simplified_explanation=data["simplifiedExplanation"].strip(),
    )


async def generate_quiz_question(
    llm: LLMProvider,
    target: WordRecord,
    candidate_pool: list[WordRecord],
    audience_level: str = "5th Grader",
) -> QuizQuestion:
    """Ask the model for one multiple-choice question about *target*.

    The pool's words are offered as distractor material; the target's own
    definition is supplied as the correct option.
    """
    prompt = QUIZ_QUESTION_PROMPT.format(
        word_list=format_word_list([w.word for w in candidate_pool]),
        word=target.word,
        definition=target.definition,
        audience_level=audience_level,
    )
    try:
        data = await _request_json(llm, prompt, QUIZ_QUESTION_SCHEMA, temperature=0.7)
    except FormatError as e:
        raise FormatError(QUIZ_FORMAT_MESSAGE, reason=e.reason) from e
    reason = _validate_quiz_question(data, target.definition)
    if reason:
        _log.error("Quiz question for %r rejected: %s", target.word, reason)
        raise FormatError(QUIZ_FORMAT_MESSAGE, reason=reason)
    return QuizQuestion(
        question=data["question"].strip(),
        options=data["options"],
        correct_answer=data["correctAnswer"],
        word=target.word,
        explanation=target.simplified_explanation,
    )


async def get_pronunciation(tts: TTSProvider, word: str) -> str:
    """Return the spoken *word* as base64-encoded 16-bit PCM."""
    try:
        pcm = await tts.synthesize(word)
    except VocabError:
        raise
    except Exception as e:
        _log.warning("%s synthesis failed: %s", tts.name(), e)
        raise ProviderError(f"The speech request failed: {e}") from e
    if not pcm:
        raise NoAudioError()
    return base64.b64encode(pcm).decode("ascii")
