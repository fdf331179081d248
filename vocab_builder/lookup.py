"""Word lookup: search, result navigation, audience changes and pronunciation."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from vocab_builder.audio import SAMPLE_RATE, AudioSink, decode_audio, discard
from vocab_builder.errors import VocabError
from vocab_builder.word_provider import fetch_partial_word_data, fetch_word_data, get_pronunciation

if TYPE_CHECKING:
    import numpy as np

    from vocab_builder.history import HistoryStore
    from vocab_builder.models import WordRecord
    from vocab_builder.providers.base import LLMProvider, TTSProvider

_log = logging.getLogger("vocab_builder.lookup")

SEARCH_FAILED = "An unknown error occurred."
UPDATE_FAILED = "Failed to update explanation."
PRONOUNCE_FAILED = "Could not pronounce the word."


def split_words(raw_input: str) -> list[str]:
    """Split comma-separated input into trimmed, non-empty words."""
    return [w.strip() for w in raw_input.split(",") if w.strip()]


class LookupOrchestrator:
    def __init__(
        self,
        llm: LLMProvider,
        tts: TTSProvider,
        store: HistoryStore,
        audience_level: str = "5th Grader",
        audio_sink: AudioSink = discard,
    ):
        self.llm = llm
        self.tts = tts
        self.store = store
        self.audio_sink = audio_sink
        self.current_input = ""
        self.audience_level = audience_level
        self.results: list[WordRecord] = []
        self.current_index = 0
        self.is_loading = False
        self.is_updating = False
        self.error: str | None = None
        self.pronouncing: set[str] = set()

    @property
    def current(self) -> WordRecord | None:
        if 0 <= self.current_index < len(self.results):
            return self.results[self.current_index]
        return None

    async def search(self, raw_input: str) -> None:
        """Fetch every comma-separated word concurrently.

        One failed fetch fails the whole search. Overlapping searches are not
        cancelled: whichever finishes last owns ``results``.
        """
        words = split_words(raw_input)
        if not words:
            return
        self.current_input = raw_input.strip()
        self.is_loading = True
        self.error = None
        self.results = []
        self.current_index = 0

        level = self.audience_level
        _log.info("Search %s (%s)", words, level)
        try:
            records = await asyncio.gather(
                *(fetch_word_data(self.llm, w, level) for w in words)
            )
            self.results = list(records)
            self.current_index = 0
            self.store.add_to_history(self.results)
        except VocabError as e:
            self.error = str(e)
        except Exception:
            _log.exception("Search failed")
            self.error = SEARCH_FAILED
        finally:
            self.is_loading = False

    async def change_audience_level(self, level: str) -> None:
        """Switch level and refresh only the displayed word's explanation."""
        if level == self.audience_level:
            return
        self.audience_level = level
        record = self.current
        if record is None:
            return

        index = self.current_index
        self.is_updating = True
        self.error = None
        try:
            partial = await fetch_partial_word_data(self.llm, record.word, level)
            # The result may have picked up audio while we waited
            if index < len(self.results) and self.results[index].key == record.key:
                record = self.results[index]
                updated = record.with_partial(partial)
                self.results[index] = updated
            else:
                updated = record.with_partial(partial)
            self.store.update_history_item(updated)
        except VocabError as e:
            self.error = str(e)
        except Exception:
            _log.exception("Audience update failed for %r", record.word)
            self.error = UPDATE_FAILED
        finally:
            self.is_updating = False

    def navigate(self, direction: str) -> int:
        if direction not in ("next", "prev"):
            raise ValueError(f"direction must be 'next' or 'prev', got {direction!r}")
        if self.results:
            step = 1 if direction == "next" else -1
            self.current_index = (self.current_index + step) % len(self.results)
        return self.current_index

    def select_from_history(self, word: str) -> bool:
        """Show the whole history (oldest first) positioned on *word*."""
        chronological = list(reversed(self.store.history))
        key = word.lower()
        index = next((i for i, r in enumerate(chronological) if r.key == key), -1)
        if index == -1:
            return False
        self.results = chronological
        self.current_index = index
        self.is_loading = False
        self.error = None
        return True

    def find(self, word: str | None) -> WordRecord | None:
        if word is None:
            return self.current
        key = word.lower()
        current = self.current
        if current is not None and current.key == key:
            return current
        return next((r for r in self.results if r.key == key), None) or self.store.get(word)

    def _cache_record(self, record: WordRecord) -> None:
        for i, r in enumerate(self.results):
            if r.key == record.key:
                self.results[i] = record
        self.store.update_history_item(record)

    async def pronounce(self, word: str | None = None) -> np.ndarray | None:
        """Play *word* (default: the displayed word), fetching audio once.

        Returns the decoded buffer, or ``None`` if nothing was played.
        """
        record = self.find(word)
        if record is None:
            self.error = PRONOUNCE_FAILED
            return None
        if record.key in self.pronouncing:
            return None

        self.pronouncing.add(record.key)
        try:
            if not record.pronunciation_audio:
                _log.warning("Pronunciation not found for %r, fetching on demand", record.word)
                payload = await get_pronunciation(self.tts, record.word)
                record = replace(record, pronunciation_audio=payload, audio_buffer=None)
                self._cache_record(record)

            if record.audio_buffer is None:
                record.audio_buffer = decode_audio(record.pronunciation_audio)
            self.audio_sink(record.audio_buffer, SAMPLE_RATE)
            return record.audio_buffer
        except Exception as e:
            _log.error("Pronunciation error for %r: %s", record.word, e)
            self.error = PRONOUNCE_FAILED
            return None
        finally:
            self.pronouncing.discard(record.key)

    def to_dict(self) -> dict:
        current = self.current
        return {
            "currentInput": self.current_input,
            "audienceLevel": self.audience_level,
            "results": [r.to_dict() for r in self.results],
            "currentIndex": self.current_index,
            "current": current.to_dict() if current else None,
            "bookmarked": self.store.is_bookmarked(current.word) if current else False,
            "isLoading": self.is_loading,
            "isUpdating": self.is_updating,
            "error": self.error,
        }
