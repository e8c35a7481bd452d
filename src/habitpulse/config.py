"""Worker configuration objects and helpers."""

from __future__ import annotations

import os
from datetime import time
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _parse_time(value: str) -> time:
    """Parse ``HH:MM`` into a :class:`datetime.time`."""

    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes or 0))


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPulse"
    DB_FILENAME = "habitpulse.db"
    WARNING_STREAK_THRESHOLD = 2
    PRESERVATION_STREAK_THRESHOLD = 7
    # Applied on every SQLite connection; jobs write from several pool threads.
    SQLITE_PRAGMAS = {"journal_mode": "wal", "busy_timeout": "5000"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITPULSE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITPULSE_DATABASE_URL", self._build_sqlite_url())
        self.SCHEDULER_TIMEZONE = os.getenv("HABITPULSE_SCHEDULER_TIMEZONE", "UTC")
        self.DEFAULT_REMINDER_TIME = _parse_time(
            os.getenv("HABITPULSE_DEFAULT_REMINDER_TIME", "09:00")
        )
        self.STREAK_WARNING_HOUR = _env_int("HABITPULSE_STREAK_WARNING_HOUR", 20)
        self.PRESERVATION_WINDOW_MINUTES = _env_int("HABITPULSE_PRESERVATION_WINDOW_MINUTES", 120)
        self.WELCOME_WINDOW_MINUTES = _env_int("HABITPULSE_WELCOME_WINDOW_MINUTES", 30)
        self.SCHEDULER_ENABLED = _env_bool("HABITPULSE_SCHEDULER_ENABLED", default=True)
        if not 0 <= self.STREAK_WARNING_HOUR <= 23:
            raise ValueError("HABITPULSE_STREAK_WARNING_HOUR must be between 0 and 23.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITPULSE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            # APScheduler runs jobs on pool threads.
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite."""

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str | None = None) -> None:
        if data_dir is not None:
            os.environ["HABITPULSE_DATA_DIR"] = str(data_dir)
        super().__init__()
        self.DATABASE_URL = self._build_sqlite_url()
        self.SCHEDULER_ENABLED = False


__all__ = ["BaseConfig", "DevConfig", "TestConfig"]
