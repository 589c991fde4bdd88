"""
Trivia Backend Logging
======================
Rotating file logs plus a JSONL stream of game events. Files land in
backend/logs/ unless TRIVIA_LOG_DIR points elsewhere.

  - trivia.log             everything at DEBUG and above
  - generation.log         one START/END pair per call to the completion service
  - game_events.jsonl      question and answer events, one JSON object per line
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections import Counter
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from config import settings

LOG_DIR: Path = settings.log_dir
GAME_EVENTS_FILE = "game_events.jsonl"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(rid: str | None = None) -> str:
    """Bind a correlation id to the current request context and return it."""
    rid = rid or uuid.uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def get_request_id() -> str:
    return _request_id.get("-")


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()  # type: ignore[attr-defined]
        return True


_FILE_FMT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)-16s | [%(request_id)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    defaults={"request_id": "-"},
)
_RAW_FMT = logging.Formatter("%(message)s")

_CONFIGURED = False


def _file_handler(filename: str, formatter: logging.Formatter, max_mb: int = 5, backups: int = 5) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    handler.addFilter(_RequestIdFilter())
    return handler


def setup_logging(*, console_level: int = logging.INFO) -> None:
    """Attach console and file handlers. Later calls are no-ops."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s", datefmt="%H:%M:%S"))
    root.addHandler(console)
    root.addHandler(_file_handler("trivia.log", _FILE_FMT))

    # generation.log gets its own copy; records still reach trivia.log
    get_generation_logger().addHandler(_file_handler("generation.log", _FILE_FMT))

    # Raw JSON lines only, kept off the console
    events = get_game_event_logger()
    events.setLevel(logging.DEBUG)
    events.addHandler(_file_handler(GAME_EVENTS_FILE, _RAW_FMT, max_mb=10, backups=10))
    events.propagate = False

    get_logger().info(f"📁 Logging initialised – log directory: {LOG_DIR.resolve()}")


def get_logger(name: str = "Trivia") -> logging.Logger:
    return logging.getLogger(name)


def get_generation_logger() -> logging.Logger:
    return logging.getLogger("generation")


def get_game_event_logger() -> logging.Logger:
    return logging.getLogger("game.events")


# --- Game events ---

def log_game_event(event_type: str, *, player_id: str | None = None, data: dict[str, Any] | None = None) -> None:
    """Append one event (question_generated, answer_submitted, ...) to game_events.jsonl."""
    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event_type,
        "request_id": get_request_id(),
    }
    if player_id:
        record["player_id"] = player_id
    if data:
        record.update(data)
    get_game_event_logger().info(json.dumps(record, default=str))


def summarize_game_events(since_hours: float = 24) -> dict[str, Any]:
    """How questions were sourced and answered over the last `since_hours`.

    Reads game_events.jsonl; lines that are not valid JSON are skipped.
    """
    path = LOG_DIR / GAME_EVENTS_FILE
    cutoff = time.time() - since_hours * 3600
    counts: Counter[str] = Counter()
    correct = 0
    players: set[str] = set()

    if path.exists():
        with path.open(encoding="utf-8") as f:
            for line in f:
                try:
                    event = json.loads(line)
                    ts = datetime.fromisoformat(event["ts"]).timestamp()
                except (ValueError, KeyError, TypeError):
                    continue
                if ts < cutoff:
                    continue
                counts[event.get("event", "unknown")] += 1
                if event.get("event") == "answer_submitted":
                    players.add(event.get("player_id") or "-")
                    correct += bool(event.get("correct"))

    served = counts["question_generated"] + counts["question_fallback"]
    answered = counts["answer_submitted"]
    return {
        "period_hours": since_hours,
        "questions_generated": counts["question_generated"],
        "questions_from_store": counts["question_fallback"],
        "questions_unavailable": counts["question_unavailable"],
        "fallback_rate_pct": round(counts["question_fallback"] / max(served, 1) * 100, 1),
        "answers_submitted": answered,
        "answers_correct": correct,
        "answers_rejected": counts["answer_rejected"],
        "accuracy_pct": round(correct / max(answered, 1) * 100, 1),
        "players": len(players),
    }


# --- Generation call tracking ---

def extract_token_usage(usage_block: Optional[dict[str, Any]]) -> dict[str, int]:
    """Integer token counts from a chat-completions `usage` block."""
    usage: dict[str, int] = {}
    if not isinstance(usage_block, dict):
        return usage
    for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
        try:
            if key in usage_block:
                usage[key] = int(usage_block[key])
        except (TypeError, ValueError):
            continue
    if usage and "total_tokens" not in usage:
        usage["total_tokens"] = usage.get("prompt_tokens", 0) + usage.get("completion_tokens", 0)
    return usage


class GenerationCallTracker:
    """Times one question-generation request and logs its outcome to generation.log."""

    def __init__(self, *, model: str, prompt_chars: int = 0):
        self.model = model
        self.prompt_chars = prompt_chars
        self.elapsed_ms: int = 0
        self._start = 0.0
        self._finished = False
        self._log = get_generation_logger()

    def __enter__(self) -> "GenerationCallTracker":
        self._start = time.time()
        self._log.info("┌─ Question request  model=%s  prompt=%d chars", self.model, self.prompt_chars)
        return self

    def finish(
        self,
        *,
        success: bool = True,
        error: str | None = None,
        status_code: int | None = None,
        response_chars: int = 0,
        token_usage: dict[str, Any] | None = None,
    ) -> dict[str, int]:
        self._finished = True
        self.elapsed_ms = int((time.time() - self._start) * 1000)
        usage = extract_token_usage(token_usage)
        tokens = f"  tokens={usage['total_tokens']}" if usage else ""
        level = logging.INFO if success else logging.WARNING
        self._log.log(
            level,
            "└─ Question request %s  status=%s  %dms  reply=%d chars%s",
            "OK" if success else f"FAILED ({error})",
            status_code if status_code is not None else "-",
            self.elapsed_ms,
            response_chars,
            tokens,
        )
        return usage

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None and not self._finished:
            self.finish(success=False, error=f"{exc_type.__name__}: {exc_val}")
