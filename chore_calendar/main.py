from __future__ import annotations

import logging
import sys
from datetime import date

from chore_calendar.infra.db import init_db
from chore_calendar.infra.logging import setup_logging
from chore_calendar.infra.storage import StorageAdapter
from chore_calendar.services.chore_store import ChoreStore

logger = logging.getLogger(__name__)


def build_store(adapter: StorageAdapter | None = None) -> ChoreStore:
    return ChoreStore(adapter or StorageAdapter())


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.critical("DB error: %s", exc)
        sys.exit(1)

    chores = build_store()
    generated = chores.generate_for_month(date.today())
    logger.info(
        "Loaded %d template(s), %d instance(s); generated %d for the visible window",
        len(chores.templates),
        len(chores.instances),
        len(generated),
    )


if __name__ == "__main__":
    main()
