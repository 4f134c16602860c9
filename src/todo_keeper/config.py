# src/todo_keeper/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing reads the environment after startup: the bootstrap receives the
  Settings object and passes values to stores/controllers explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODO"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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
    console_log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    prefs_db_path: Path

    # ---- Todo list behaviour ----
    undo_seconds: float
    live_preferences: bool
    time_format: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo") or "todo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_log_level = _env(_k("CONSOLE_LOG_LEVEL"), "WARNING")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo_keeper"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "todos.sqlite3")
        prefs_db_path = _env_path(_k("PREFS_DB_PATH"), data_dir / "prefs.sqlite3")

        undo_seconds = max(0.0, _env_float(_k("UNDO_SECONDS"), 4.0))
        live_preferences = _env_bool(_k("LIVE_PREFERENCES"), False)
        time_format = _env(_k("TIME_FORMAT"), "%Y-%m-%d %H:%M") or "%Y-%m-%d %H:%M"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_log_level=console_log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            prefs_db_path=prefs_db_path,
            undo_seconds=undo_seconds,
            live_preferences=live_preferences,
            time_format=time_format,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process settings, read from the environment (and a local .env) on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
