"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

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
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "StreakSage"
    DB_FILENAME = "streaksage.db"
    DEFAULT_WINDOW_DAYS = 30

    def __init__(self) -> None:
        self.DEV_MODE = _env_bool("STREAKSAGE_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("STREAKSAGE_DATABASE_URL", self._build_sqlite_url())
        self.TIMEZONE = os.getenv("STREAKSAGE_TIMEZONE", "UTC")
        self.WINDOW_DAYS = _env_int("STREAKSAGE_WINDOW_DAYS", self.DEFAULT_WINDOW_DAYS)
        self.USERNAME = os.getenv("STREAKSAGE_USER", "me")
        self.validate()

    def validate(self) -> None:
        """Reject settings the stats engine or date handling cannot use."""

        if self.WINDOW_DAYS <= 0:
            raise ValueError("STREAKSAGE_WINDOW_DAYS must be a positive integer.")
        try:
            ZoneInfo(self.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown STREAKSAGE_TIMEZONE: {self.TIMEZONE!r}") from exc

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("STREAKSAGE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class TestConfig(BaseConfig):
    """Configuration backed by an in-memory SQLite database."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"
