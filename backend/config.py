"""
Trivia Backend Configuration
============================
All tunables come from environment variables and are read once at import.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BACKEND_DIR = Path(__file__).parent


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    openai_url: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 200
    temperature: float = 0.7
    generation_timeout: float = 30.0
    store_size: int = 100
    default_player_id: str = "default"
    log_dir: Path = BACKEND_DIR / "logs"
    port: int = 3001


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    store_size = _env_int("TRIVIA_STORE_SIZE", 100)
    if store_size < 1:
        raise ValueError("TRIVIA_STORE_SIZE must be at least 1")

    return Settings(
        openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
        openai_url=os.environ.get("TRIVIA_OPENAI_URL", Settings.openai_url),
        model=os.environ.get("TRIVIA_MODEL", Settings.model),
        max_tokens=_env_int("TRIVIA_MAX_TOKENS", Settings.max_tokens),
        temperature=_env_float("TRIVIA_TEMPERATURE", Settings.temperature),
        generation_timeout=_env_float("TRIVIA_GENERATION_TIMEOUT", Settings.generation_timeout),
        store_size=store_size,
        default_player_id=os.environ.get("TRIVIA_DEFAULT_PLAYER_ID", "").strip() or Settings.default_player_id,
        log_dir=Path(os.environ.get("TRIVIA_LOG_DIR", "") or Settings.log_dir),
        port=_env_int("TRIVIA_PORT", Settings.port),
    )


settings = load_settings()
