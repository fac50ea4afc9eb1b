from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _first_existing(name: str) -> Path | None:
    # The working directory wins over the checkout.
    for base in (Path.cwd(), PROJECT_ROOT):
        if (base / name).is_file():
            return base / name
    return None


def load_env(env_name: str | None = None) -> list[Path]:
    env_name = env_name or os.getenv("CHORE_ENV") or os.getenv("APP_ENV", "development")
    loaded = []
    shared = _first_existing(".env")
    if shared:
        load_dotenv(shared)
        loaded.append(shared)
    specific = _first_existing(f".env.{env_name}")
    if specific:
        load_dotenv(specific, override=True)
        loaded.append(specific)
    return loaded


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    storage_key: str = "chore-app-data"
    storage_quota_bytes: int = 5_000_000
    backup_dir: str = "backups"
    generation_buffer_months: int = 1


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{PROJECT_ROOT / 'chores.db'}"

SETTINGS = Settings(
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    storage_key=os.getenv("STORAGE_KEY", "").strip() or "chore-app-data",
    storage_quota_bytes=int(os.getenv("STORAGE_QUOTA_BYTES", "5000000")),
    backup_dir=os.getenv("BACKUP_DIR", "backups"),
    generation_buffer_months=int(os.getenv("GENERATION_BUFFER_MONTHS", "1")),
)
