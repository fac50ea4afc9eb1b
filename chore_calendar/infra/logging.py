from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from chore_calendar.config import SETTINGS, PROJECT_ROOT

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE_NAME = "chore_calendar.log"


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> Path:
    target_dir = log_dir or PROJECT_ROOT / SETTINGS.log_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / LOG_FILE_NAME

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        handlers=[file_handler, console_handler],
        force=True,
    )
    # SQL echo is noise at the blob-store level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return log_file
