"""
Service settings.

Values come from the process environment, seeded from a local `.env` file
(path overridable with SONGS_ENV_FILE). Settings are built once at startup
and passed to collaborators; request handlers get them through
`get_settings`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from dotenv import load_dotenv
from fastapi import Request

DEFAULT_ENV_FILE = ".env"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_log_level(name: str, default: str) -> str:
    level = os.environ.get(name, "").strip().upper()
    # getLevelName maps known names to their int value.
    if level and isinstance(logging.getLevelName(level), int):
        return level
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    postgres_host: str
    postgres_port: int
    postgres_db: str
    postgres_user: str
    postgres_password: str
    song_info_url: str = "http://localhost:8000"
    song_info_timeout_s: float = 10.0
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_command_timeout_s: float = 30.0
    log_level: str = "INFO"

    def dsn(self) -> str:
        user = quote(self.postgres_user, safe="")
        password = quote(self.postgres_password, safe="")
        return (
            f"postgresql://{user}:{password}@{self.postgres_host}:{self.postgres_port}"
            f"/{quote(self.postgres_db, safe='')}"
        )


def load_env_file(path: str | None = None) -> Path:
    """
    Load KEY=VALUE pairs from the env file into os.environ.

    Variables already present in the environment are not overridden.
    """
    env_path = Path(path or os.environ.get("SONGS_ENV_FILE", "").strip() or DEFAULT_ENV_FILE)
    if not env_path.is_file():
        raise RuntimeError(f"Error loading {env_path} file.")
    load_dotenv(env_path, override=False)
    return env_path


def settings_from_env() -> Settings:
    missing = [
        name
        for name in ("POSTGRES_DB", "POSTGRES_USER", "POSTGRES_PASSWORD")
        if not os.environ.get(name, "").strip()
    ]
    if missing:
        raise RuntimeError(f"Missing required settings: {', '.join(missing)}.")

    return Settings(
        postgres_host=_env_str("POSTGRES_HOST", "localhost"),
        postgres_port=_env_int("POSTGRES_PORT", 5432),
        postgres_db=_env_str("POSTGRES_DB"),
        postgres_user=_env_str("POSTGRES_USER"),
        postgres_password=_env_str("POSTGRES_PASSWORD"),
        song_info_url=_env_str("SONG_INFO_URL", "http://localhost:8000"),
        song_info_timeout_s=_env_float("SONG_INFO_TIMEOUT_S", 10.0),
        db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
        db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
        db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        log_level=_env_log_level("LOG_LEVEL", "INFO"),
    )


def load_settings(env_file: str | None = None) -> Settings:
    load_env_file(env_file)
    return settings_from_env()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
