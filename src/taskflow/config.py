# src/taskflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the LLM key is optional; without it the
  offline assistant is used).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"

load_dotenv(override=False)


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


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_minutes(name: str, default: list[int]) -> list[int]:
    out: list[int] = []
    for part in _env_list(name, [str(m) for m in default]):
        try:
            minutes = int(part)
        except ValueError:
            continue
        if minutes > 0:
            out.append(minutes)
    return out or list(default)


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data ----
    data_dir: Path
    tasks_key: str
    theme_key: str

    # ---- Alarms ----
    alarm_interval_seconds: float
    snooze_presets: list[int]
    notifications_enabled: bool
    bell_enabled: bool
    bell_interval_seconds: float

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    llm_connect_timeout_seconds: float
    llm_read_timeout_seconds: float

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "TaskFlow")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        tasks_key = _env(_k("TASKS_KEY"), "taskflow_tasks")
        theme_key = _env(_k("THEME_KEY"), "taskflow_theme")

        alarm_interval_seconds = _env_float(_k("ALARM_INTERVAL_SECONDS"), 10.0)
        snooze_presets = _env_minutes(_k("SNOOZE_PRESETS"), [5, 15])
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        bell_enabled = _env_bool(_k("BELL_ENABLED"), True)
        bell_interval_seconds = _env_float(_k("BELL_INTERVAL_SECONDS"), 1.5)

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": app_name,
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "google/gemini-2.0-flash-exp:free",
                "qwen/qwen-2.5-72b-instruct:free",
                "deepseek/deepseek-chat-v3-0324:free",
            ],
        )

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_key=tasks_key,
            theme_key=theme_key,
            alarm_interval_seconds=alarm_interval_seconds,
            snooze_presets=snooze_presets,
            notifications_enabled=notifications_enabled,
            bell_enabled=bell_enabled,
            bell_interval_seconds=bell_interval_seconds,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            llm_connect_timeout_seconds=_env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0),
            llm_read_timeout_seconds=_env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 30.0),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
