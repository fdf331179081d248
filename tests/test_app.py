"""Tests for the FastAPI application routes."""
from __future__ import annotations

import io
import wave
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLM, FakeTTS, make_record
from vocab_builder import app as app_module
from vocab_builder.app import app, create_state
from vocab_builder.config import Settings
from vocab_builder.db import Database


@pytest.fixture
def test_app(tmp_path):
    """Set up test app with temporary database and fake providers."""
    db = Database(tmp_path / "test.db")
    settings = Settings(db_path=str(tmp_path / "test.db"))
    llm, tts = FakeLLM(), FakeTTS()

    # Set state BEFORE creating TestClient so startup() is a no-op
    app_module._state = create_state(settings, db, llm, tts)

    # Patch save_settings so tests never write the real config.json
    with patch("vocab_builder.app.save_settings") as saved:
        client = TestClient(app, raise_server_exceptions=False)
        yield client, app_module._state, llm, saved
        client.close()

    db.close()
    app_module._state = None


@pytest.fixture
def test_app_with_history(test_app, sample_records):
    client, state, llm, saved = test_app
    state.store.add_to_history(sample_records)
    return test_app


class TestLookup:
    def test_initial_view(self, test_app):
        client, _, _, _ = test_app
        resp = client.get("/api/lookup")
        assert resp.status_code == 200
        data = resp.json()
        assert data["results"] == []
        assert data["current"] is None
        assert data["audienceLevel"] == "5th Grader"

    def test_search(self, test_app):
        client, state, _, _ = test_app
        resp = client.post("/api/search", json={"input": "candid, ephemeral"})
        assert resp.status_code == 200
        data = resp.json()
        assert [r["word"] for r in data["results"]] == ["candid", "ephemeral"]
        assert data["current"]["simplifiedExplanation"] == "candid for a 5th Grader"
        assert data["current"]["difficulty"] == "Hard"
        assert data["error"] is None
        assert len(state.store) == 2

    def test_search_persists(self, test_app):
        client, state, _, _ = test_app
        client.post("/api/search", json={"input": "candid"})
        assert "candid" in state.db.get_value("history")

    def test_search_requires_input(self, test_app):
        client, _, _, _ = test_app
        resp = client.post("/api/search", json={"input": "  "})
        assert resp.status_code == 400
        resp = client.post("/api/search")
        assert resp.status_code == 400

    def test_search_error_reported(self, test_app):
        client, _, llm, _ = test_app
        llm.garbage_words.add("candid")
        data = client.post("/api/search", json={"input": "candid"}).json()
        assert data["error"] == "The API returned an unexpected format."
        assert data["results"] == []

    def test_navigate(self, test_app):
        client, _, _, _ = test_app
        client.post("/api/search", json={"input": "candid, ephemeral"})
        data = client.post("/api/navigate", json={"direction": "prev"}).json()
        assert data["currentIndex"] == 1
        assert data["current"]["word"] == "ephemeral"

    def test_navigate_bad_direction(self, test_app):
        client, _, _, _ = test_app
        resp = client.post("/api/navigate", json={"direction": "up"})
        assert resp.status_code == 400

    def test_audience_change(self, test_app):
        client, state, _, _ = test_app
        client.post("/api/search", json={"input": "candid, ephemeral"})
        data = client.post("/api/audience", json={"level": "College Student"}).json()
        assert data["audienceLevel"] == "College Student"
        assert data["current"]["simplifiedExplanation"] == "candid for a College Student"
        assert state.store.get("ephemeral").simplified_explanation == "ephemeral for a 5th Grader"


class TestPronounce:
    def test_returns_wav(self, test_app):
        client, state, _, _ = test_app
        client.post("/api/search", json={"input": "candid"})
        resp = client.post("/api/pronounce", json={"word": "candid"})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "audio/wav"
        with wave.open(io.BytesIO(resp.content)) as w:
            assert w.getframerate() == 24000
            assert w.getnchannels() == 1
            assert w.getnframes() == 2
        assert state.store.get("candid").pronunciation_audio

    def test_unknown_word(self, test_app):
        client, _, _, _ = test_app
        resp = client.post("/api/pronounce", json={"word": "nothing"})
        assert resp.status_code == 404

    def test_no_audio(self, test_app):
        client, state, _, _ = test_app
        state.lookup.tts = FakeTTS(pcm=b"")
        client.post("/api/search", json={"input": "candid"})
        resp = client.post("/api/pronounce", json={"word": "candid"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Could not pronounce the word."


class TestHistory:
    def test_list_with_bookmark_flag(self, test_app_with_history):
        client, state, _, _ = test_app_with_history
        state.store.toggle_bookmark(state.store.get("candid"))
        history = client.get("/api/history").json()["history"]
        assert len(history) == 5
        flags = {h["word"]: h["bookmarked"] for h in history}
        assert flags["candid"] is True
        assert flags["ephemeral"] is False

    def test_select(self, test_app_with_history):
        client, _, _, _ = test_app_with_history
        data = client.post("/api/history/select", json={"word": "candid"}).json()
        assert data["current"]["word"] == "candid"
        assert len(data["results"]) == 5

    def test_select_unknown(self, test_app_with_history):
        client, _, _, _ = test_app_with_history
        resp = client.post("/api/history/select", json={"word": "nope"})
        assert resp.status_code == 404


class TestBookmarks:
    def test_toggle(self, test_app_with_history):
        client, _, _, _ = test_app_with_history
        resp = client.post("/api/bookmarks/toggle", json={"word": "candid"})
        assert resp.json() == {"word": "candid", "bookmarked": True}
        bookmarks = client.get("/api/bookmarks").json()["bookmarks"]
        assert [b["word"] for b in bookmarks] == ["candid"]

        resp = client.post("/api/bookmarks/toggle", json={"word": "candid"})
        assert resp.json()["bookmarked"] is False
        assert client.get("/api/bookmarks").json()["bookmarks"] == []

    def test_toggle_unknown(self, test_app):
        client, _, _, _ = test_app
        resp = client.post("/api/bookmarks/toggle", json={"word": "nope"})
        assert resp.status_code == 404


class TestQuiz:
    def test_needs_four_words(self, test_app):
        client, state, _, _ = test_app
        state.store.add_to_history([make_record("one"), make_record("two")])
        data = client.get("/api/quiz").json()
        assert data["state"] == "idle"
        assert data["wordCount"] == 2
        resp = client.post("/api/quiz/start")
        assert resp.json()["error"] == "You need at least 4 words in your history to start a quiz."

    def test_auto_start(self, test_app_with_history):
        client, _, _, _ = test_app_with_history
        data = client.get("/api/quiz").json()
        assert data["state"] == "active"
        assert data["total"] == 5
        assert len(data["current"]["options"]) == 4
        assert "correctAnswer" not in data["current"]

    def test_answer(self, test_app_with_history):
        client, state, _, _ = test_app_with_history
        quiz = client.post("/api/quiz/start").json()
        word = quiz["current"]["word"]
        resp = client.post("/api/quiz/answer", json={"option": f"the meaning of {word}"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["correct"] is True
        assert data["quiz"]["current"]["correctAnswer"] == f"the meaning of {word}"
        assert state.quiz.answers == {0: f"the meaning of {word}"}

    def test_answer_not_an_option(self, test_app_with_history):
        client, _, _, _ = test_app_with_history
        client.post("/api/quiz/start")
        resp = client.post("/api/quiz/answer", json={"option": "made up"})
        assert resp.status_code == 400

    def test_restart(self, test_app_with_history):
        client, _, llm, _ = test_app_with_history
        client.post("/api/quiz/start")
        data = client.post("/api/quiz/restart").json()
        assert data["state"] == "active"
        assert llm.call_count == 10

    def test_bookmark_source(self, test_app_with_history):
        client, state, _, _ = test_app_with_history
        client.put("/api/settings", json={"quiz_source": "bookmarks"})
        data = client.post("/api/quiz/start").json()
        assert data["state"] == "idle"
        assert data["error"] == "You need at least 4 words in your bookmarks to start a quiz."


class TestSettings:
    def test_get(self, test_app):
        client, _, _, _ = test_app
        data = client.get("/api/settings").json()
        assert data["llm_provider"] == "gemini"
        assert data["quiz_size"] == 0

    def test_update(self, test_app):
        client, state, _, saved = test_app
        resp = client.put("/api/settings", json={"quiz_size": 3, "unknown_key": 1})
        assert resp.status_code == 200
        assert resp.json()["quiz_size"] == 3
        assert "unknown_key" not in resp.json()
        assert state.quiz.quiz_size == 3
        saved.assert_called_once()

    def test_update_coerces_types(self, test_app_with_history):
        client, state, _, _ = test_app_with_history
        resp = client.put("/api/settings", json={"quiz_size": "3", "quiz_auto_start": "false"})
        assert resp.status_code == 200
        assert resp.json()["quiz_size"] == 3
        assert state.settings.quiz_auto_start is False

        resp = client.post("/api/quiz/start")
        assert resp.status_code == 200
        assert resp.json()["total"] == 3

    def test_update_rejects_bad_value(self, test_app):
        client, state, _, saved = test_app
        resp = client.put("/api/settings", json={"quiz_size": "lots", "quiz_source": "bookmarks"})
        assert resp.status_code == 400
        assert "quiz_size" in resp.json()["detail"]
        assert state.settings.quiz_size == 0
        assert state.settings.quiz_source == "history"
        saved.assert_not_called()

    def test_audience_level_reaches_lookup(self, test_app):
        client, state, _, _ = test_app
        client.post("/api/search", json={"input": "candid"})
        client.put("/api/settings", json={"audience_level": "2nd Grader"})
        assert state.lookup.audience_level == "2nd Grader"
        data = client.get("/api/lookup").json()
        assert data["current"]["simplifiedExplanation"] == "candid for a 2nd Grader"

    def test_audience_change_persisted(self, test_app):
        client, state, _, saved = test_app
        client.post("/api/audience", json={"level": "College Student"})
        assert state.settings.audience_level == "College Student"
        saved.assert_called_once_with(state.settings)
        assert client.get("/api/settings").json()["audience_level"] == "College Student"
