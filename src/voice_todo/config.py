# src/voice_todo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One explicit, fully enumerated Settings object for the whole app.
- No secrets required at import time.
- Settings are read once and are immutable afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "VOICE_TODO"

DEFAULT_GREETING = "Hi, I'm Sid, how can I assist you today?"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Task API ----
    api_base_url: str
    api_timeout_ms: int
    api_max_retries: int
    api_initial_delay_ms: int
    api_max_delay_ms: int
    api_backoff_multiplier: float

    # ---- LLM (OpenAI-compatible) ----
    openai_api_key: Optional[str]
    openai_base_url: Optional[str]
    llm_models: List[str]
    llm_temperature: float
    llm_max_tool_rounds: int

    # ---- Session ----
    user_timezone: str
    greeting: str
    greeting_play_once: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "voice-todo")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/voice-todo"))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        # API_BASE_URL is what the web app deployment already sets.
        api_base_url = _first_env(_k("API_BASE_URL"), "API_BASE_URL", default="http://localhost:3000") or ""
        api_timeout_ms = _env_int(_k("API_TIMEOUT_MS"), 8000)
        api_max_retries = _env_int(_k("API_MAX_RETRIES"), 2)
        api_initial_delay_ms = _env_int(_k("API_INITIAL_DELAY_MS"), 500)
        api_max_delay_ms = _env_int(_k("API_MAX_DELAY_MS"), 5000)
        api_backoff_multiplier = _env_float(_k("API_BACKOFF_MULTIPLIER"), 2.0)

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _first_env(_k("OPENAI_BASE_URL"), "OPENAI_BASE_URL", default=None)
        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o-mini"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.7)
        llm_max_tool_rounds = _env_int(_k("LLM_MAX_TOOL_ROUNDS"), 4)

        user_timezone = _env(_k("USER_TIMEZONE"), "UTC").strip() or "UTC"
        greeting = _env(_k("GREETING"), DEFAULT_GREETING)
        greeting_play_once = _env_bool(_k("GREETING_PLAY_ONCE"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            console_enabled=console_enabled,
            api_base_url=api_base_url,
            api_timeout_ms=api_timeout_ms,
            api_max_retries=api_max_retries,
            api_initial_delay_ms=api_initial_delay_ms,
            api_max_delay_ms=api_max_delay_ms,
            api_backoff_multiplier=api_backoff_multiplier,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_models=llm_models,
            llm_temperature=llm_temperature,
            llm_max_tool_rounds=llm_max_tool_rounds,
            user_timezone=user_timezone,
            greeting=greeting,
            greeting_play_once=greeting_play_once,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env (without overriding real env vars) and build Settings once."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
