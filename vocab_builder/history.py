"""Session history and bookmarks of fetched words.

Both collections are ordered newest first and keyed case-insensitively by
word. When a :class:`Database` is attached, every mutation is mirrored to it
as JSON (decoded audio buffers are never written).
"""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Callable

from vocab_builder.models import WordRecord

if TYPE_CHECKING:
    from vocab_builder.db import Database

_log = logging.getLogger("vocab_builder.history")

HISTORY_KEY = "history"
BOOKMARKS_KEY = "bookmarks"


class HistoryStore:
    def __init__(self, db: Database | None = None):
        self.db = db
        self._history: list[WordRecord] = []
        self._bookmarks: list[WordRecord] = []
        self._listeners: list[Callable[[], None]] = []
        if db is not None:
            self.load()

    @property
    def history(self) -> list[WordRecord]:
        return list(self._history)

    @property
    def bookmarks(self) -> list[WordRecord]:
        return list(self._bookmarks)

    def __len__(self) -> int:
        return len(self._history)

    def get(self, word: str) -> WordRecord | None:
        key = word.lower()
        return next((r for r in self._history if r.key == key), None)

    def is_bookmarked(self, word: str) -> bool:
        key = word.lower()
        return any(r.key == key for r in self._bookmarks)

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call *listener* after every mutation."""
        self._listeners.append(listener)

    # ── Mutations ────────────────────────────────────────────────────────

    def add_to_history(self, records: list[WordRecord]) -> list[WordRecord]:
        """Prepend records whose word is not already present.

        Returns the records actually added.
        """
        seen = {r.key for r in self._history}
        added: list[WordRecord] = []
        for r in records:
            if r.key in seen:
                continue
            seen.add(r.key)
            added.append(r)
        if added:
            self._history = added + self._history
            _log.info("History +%d (%d total)", len(added), len(self._history))
            self._changed()
        return added

    def update_history_item(self, record: WordRecord) -> bool:
        """Replace the entry for ``record.word`` in place; no-op if absent."""
        found = self._replace(self._history, record)
        # Bookmarks hold their own copy of the record
        if self._replace(self._bookmarks, record) or found:
            self._changed()
        return found

    @staticmethod
    def _replace(items: list[WordRecord], record: WordRecord) -> bool:
        for i, r in enumerate(items):
            if r.key == record.key:
                items[i] = record
                return True
        return False

    def toggle_bookmark(self, record: WordRecord) -> bool:
        """Add *record* to the bookmarks or remove it. Returns the new state."""
        if self.is_bookmarked(record.word):
            self._bookmarks = [r for r in self._bookmarks if r.key != record.key]
            bookmarked = False
        else:
            self._bookmarks.insert(0, record)
            bookmarked = True
        _log.info("Bookmark %r: %s", record.word, "on" if bookmarked else "off")
        self._changed()
        return bookmarked

    def clear(self) -> None:
        self._history = []
        self._bookmarks = []
        self._changed()

    def _changed(self) -> None:
        self.save()
        for listener in self._listeners:
            listener()

    # ── Persistence ──────────────────────────────────────────────────────

    def save(self) -> None:
        if self.db is None:
            return
        self.db.set_value(HISTORY_KEY, json.dumps([r.to_dict() for r in self._history]))
        self.db.set_value(BOOKMARKS_KEY, json.dumps([r.to_dict() for r in self._bookmarks]))

    def load(self) -> None:
        self._history = self._load_records(HISTORY_KEY)
        self._bookmarks = self._load_records(BOOKMARKS_KEY)
        _log.info("Loaded %d history items, %d bookmarks",
                  len(self._history), len(self._bookmarks))

    def _load_records(self, key: str) -> list[WordRecord]:
        raw = self.db.get_value(key) if self.db is not None else None
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise TypeError(f"expected a list, got {type(items).__name__}")
            records = [WordRecord.from_dict(item) for item in items]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            _log.warning("Stored %s is unreadable, starting empty: %s", key, e)
            return []
        # Older writes may contain duplicates; the first (newest) wins
        seen: set[str] = set()
        unique = []
        for r in records:
            if r.key not in seen:
                seen.add(r.key)
                unique.append(r)
        return unique
