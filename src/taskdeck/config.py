# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Variables (all optional):
- TASKDECK_APP_NAME              display name (default: taskdeck)
- TASKDECK_LOG_LEVEL             console log level (default: INFO)
- TASKDECK_API_URL / API_URL     remote collection API base (default: http://localhost:3000/api)
- TASKDECK_HTTP_TIMEOUT_SECONDS  per-request timeout, 0 disables it (default: 0)
- TASKDECK_OFFLINE               use the in-memory gateway instead of HTTP (default: false)
- TASKDECK_DATA_DIR              local data / log directory (default: .local/taskdeck)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKDECK"

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

    # ---- Remote collection API ----
    api_base_url: str
    http_timeout_seconds: float
    offline: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck").strip() or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = (
            _first_env(_k("API_URL"), "API_URL", default="http://localhost:3000/api") or ""
        ).strip()
        http_timeout_seconds = max(0.0, _env_float(_k("HTTP_TIMEOUT_SECONDS"), 0.0))
        offline = _env_bool(_k("OFFLINE"), False)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            http_timeout_seconds=http_timeout_seconds,
            offline=offline,
            data_dir=data_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
