"""FastAPI application with all routes."""
from __future__ import annotations

import logging
from dataclasses import dataclass

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response

from vocab_builder.audio import decode_pcm, pcm_to_wav
from vocab_builder.config import DEFAULTS, Settings, coerce_setting, load_settings, save_settings
from vocab_builder.db import Database
from vocab_builder.history import HistoryStore
from vocab_builder.lookup import LookupOrchestrator
from vocab_builder.models import WordRecord
from vocab_builder.providers.factory import build_llm, build_tts
from vocab_builder.quiz import QuizEngine

app = FastAPI(title="Vocabulary Builder")


@dataclass
class AppState:
    settings: Settings
    db: Database | None
    store: HistoryStore
    lookup: LookupOrchestrator
    quiz: QuizEngine


def create_state(settings: Settings, db: Database | None, llm, tts) -> AppState:
    """Wire the store, lookup orchestrator and quiz engine together."""
    store = HistoryStore(db)
    lookup = LookupOrchestrator(llm, tts, store, audience_level=settings.audience_level)

    def quiz_words() -> list[WordRecord]:
        if settings.quiz_source == "bookmarks":
            return store.bookmarks
        return store.history

    quiz = QuizEngine(llm, words=quiz_words, audience_level=lambda: lookup.audience_level)
    state = AppState(settings=settings, db=db, store=store, lookup=lookup, quiz=quiz)
    _apply_quiz_settings(state)
    return state


def _apply_quiz_settings(state: AppState) -> None:
    s = state.settings
    state.quiz.quiz_size = s.quiz_size
    state.quiz.auto_start = s.quiz_auto_start
    state.quiz.delay_correct = s.answer_delay_correct
    state.quiz.delay_incorrect = s.answer_delay_incorrect
    state.quiz.source = s.quiz_source


# Global state (initialized in startup)
_state: AppState | None = None


def get_state() -> AppState:
    assert _state is not None
    return _state


@app.on_event("startup")
async def startup():
    global _state
    if _state is not None:
        return  # Already initialized (e.g. by tests)
    settings = load_settings()
    db = Database(settings.db_full_path)
    _state = create_state(settings, db, build_llm(settings), build_tts(settings))


@app.on_event("shutdown")
async def shutdown():
    if _state is not None:
        await _state.quiz.settle()
        if _state.db is not None:
            _state.db.close()


async def _body(request: Request) -> dict:
    return await request.json() if await request.body() else {}


def _require(body: dict, key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(400, f"No {key} provided")
    return value


# ── API: Lookup ───────────────────────────────────────────────────────────

@app.get("/api/lookup")
async def api_lookup():
    return get_state().lookup.to_dict()


@app.post("/api/search")
async def api_search(request: Request):
    body = await _body(request)
    lookup = get_state().lookup
    await lookup.search(_require(body, "input"))
    return lookup.to_dict()


@app.post("/api/audience")
async def api_audience(request: Request):
    body = await _body(request)
    state = get_state()
    level = _require(body, "level").strip()
    await state.lookup.change_audience_level(level)
    if state.settings.audience_level != level:
        state.settings.audience_level = level
        save_settings(state.settings)
    return state.lookup.to_dict()


@app.post("/api/navigate")
async def api_navigate(request: Request):
    body = await _body(request)
    lookup = get_state().lookup
    try:
        lookup.navigate(body.get("direction", "next"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return lookup.to_dict()


@app.post("/api/pronounce")
async def api_pronounce(request: Request):
    body = await _body(request)
    lookup = get_state().lookup
    word = body.get("word")
    if lookup.find(word) is None:
        raise HTTPException(404, "Word not found")

    buffer = await lookup.pronounce(word)
    record = lookup.find(word)
    if buffer is None or not record.pronunciation_audio:
        raise HTTPException(502, lookup.error or "Pronunciation unavailable")
    wav = pcm_to_wav(decode_pcm(record.pronunciation_audio))
    return Response(content=wav, media_type="audio/wav")


# ── API: History & bookmarks ──────────────────────────────────────────────

def _with_bookmark_flag(store: HistoryStore, records: list[WordRecord]) -> list[dict]:
    return [
        {**r.to_dict(), "bookmarked": store.is_bookmarked(r.word)}
        for r in records
    ]


@app.get("/api/history")
async def api_history():
    store = get_state().store
    return {"history": _with_bookmark_flag(store, store.history)}


@app.post("/api/history/select")
async def api_history_select(request: Request):
    body = await _body(request)
    lookup = get_state().lookup
    if not lookup.select_from_history(_require(body, "word")):
        raise HTTPException(404, "Word not in history")
    return lookup.to_dict()


@app.get("/api/bookmarks")
async def api_bookmarks():
    return {"bookmarks": [r.to_dict() for r in get_state().store.bookmarks]}


@app.post("/api/bookmarks/toggle")
async def api_bookmark_toggle(request: Request):
    body = await _body(request)
    state = get_state()
    word = _require(body, "word")
    record = state.lookup.find(word)
    if record is None:
        raise HTTPException(404, "Word not found")
    bookmarked = state.store.toggle_bookmark(record)
    return {"word": record.word, "bookmarked": bookmarked}


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.get("/api/quiz")
async def api_quiz():
    quiz = get_state().quiz
    await quiz.maybe_auto_start()
    return quiz.to_dict()


@app.post("/api/quiz/start")
async def api_quiz_start():
    quiz = get_state().quiz
    await quiz.start()
    return quiz.to_dict()


@app.post("/api/quiz/answer")
async def api_quiz_answer(request: Request):
    body = await _body(request)
    quiz = get_state().quiz
    try:
        correct = await quiz.answer(_require(body, "option"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"correct": correct, "quiz": quiz.to_dict()}


@app.post("/api/quiz/restart")
async def api_quiz_restart():
    quiz = get_state().quiz
    await quiz.restart()
    return quiz.to_dict()


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_state().settings.to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    state = get_state()
    s = state.settings
    try:
        updates = {k: coerce_setting(k, v) for k, v in body.items() if k in DEFAULTS}
    except ValueError as e:
        raise HTTPException(400, str(e))
    for k, v in updates.items():
        setattr(s, k, v)
    save_settings(s)
    # Provider changes take effect on the next start
    _apply_quiz_settings(state)
    if "audience_level" in updates:
        await state.lookup.change_audience_level(s.audience_level)
    return s.to_dict()
