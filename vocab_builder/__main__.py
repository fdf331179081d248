"""CLI entry point for vocab-builder.

Usage:
  python -m vocab_builder serve [--port PORT] [--host HOST]
  python -m vocab_builder stop
  python -m vocab_builder restart [--port PORT]
  python -m vocab_builder status
  python -m vocab_builder lookup WORD[,WORD...] [--level "7th Grader"]
  python -m vocab_builder history
  python -m vocab_builder bookmarks
"""
from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "restart":
        _restart(args[1:])
    elif command == "status":
        _status()
    elif command == "lookup":
        _lookup(args[1:])
    elif command == "history":
        _history()
    elif command == "bookmarks":
        _bookmarks()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, restart, status, lookup, history, bookmarks")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _positional(args: list[str]) -> list[str]:
    """Arguments that are neither flags nor flag values."""
    out: list[str] = []
    skip = False
    for a in args:
        if skip:
            skip = False
        elif a.startswith("--"):
            skip = True
        else:
            out.append(a)
    return out


def _read_pid() -> int | None:
    """Read PID from file, return None if stale or missing."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def _stop() -> bool:
    """Stop a running server. Returns True if a server was stopped."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        print(f"Stopped server (PID {pid}).")
        return True
    except ProcessLookupError:
        print("Server was not running (stale PID file removed).")
        return False
    finally:
        PID_FILE.unlink(missing_ok=True)


def _status():
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time
    _stop()
    time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    existing = _read_pid()
    if existing is not None:
        print(f"Server already running (PID {existing}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    PID_FILE.write_text(str(os.getpid()))

    print(f"Starting Vocabulary Builder on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "vocab_builder.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        PID_FILE.unlink(missing_ok=True)


def _print_record(r) -> None:
    print(f"{r.word}  [{r.difficulty.value}]  {r.part_of_speech} {r.ipa}".rstrip())
    print(f"  {r.definition}")
    for s in r.example_sentences:
        print(f'  - "{s}"')
    print(f"  Simply put: {r.simplified_explanation}")
    print()


def _lookup(args: list[str]):
    from vocab_builder.config import load_settings
    from vocab_builder.db import Database
    from vocab_builder.history import HistoryStore
    from vocab_builder.lookup import LookupOrchestrator
    from vocab_builder.providers.factory import build_llm, build_tts

    words = ",".join(_positional(args))
    if not words.strip():
        print("Usage: python -m vocab_builder lookup WORD[,WORD...] [--level LEVEL]")
        sys.exit(1)

    settings = load_settings()
    level = _parse_flag(args, "--level", settings.audience_level)
    db = Database(settings.db_full_path)
    store = HistoryStore(db)
    lookup = LookupOrchestrator(build_llm(settings), build_tts(settings), store, audience_level=level)

    print(f"Looking up {words} for a {level} using {settings.llm_provider}...\n")
    asyncio.run(lookup.search(words))
    db.close()

    if lookup.error:
        print(f"Error: {lookup.error}")
        sys.exit(1)
    for r in lookup.results:
        _print_record(r)


def _history():
    from vocab_builder.config import load_settings
    from vocab_builder.db import Database
    from vocab_builder.history import HistoryStore

    db = Database(load_settings().db_full_path)
    store = HistoryStore(db)
    if not len(store):
        print("No words looked up yet.")
    for r in store.history:
        mark = "*" if store.is_bookmarked(r.word) else " "
        print(f"{mark} {r.word:20s} {r.difficulty.value:6s} {r.definition[:60]}")
    db.close()


def _bookmarks():
    from vocab_builder.config import load_settings
    from vocab_builder.db import Database
    from vocab_builder.history import HistoryStore

    db = Database(load_settings().db_full_path)
    store = HistoryStore(db)
    if not store.bookmarks:
        print("No bookmarked words.")
    for r in store.bookmarks:
        _print_record(r)
    db.close()


if __name__ == "__main__":
    main()
