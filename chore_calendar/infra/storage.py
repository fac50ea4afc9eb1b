from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chore_calendar.config import PROJECT_ROOT, SETTINGS
from chore_calendar.domain.entities import Store
from chore_calendar.domain.errors import ImportFormatError, StorageError, StorageQuotaExceeded

from .db import SessionLocal
from .models import StorageEntryModel
from .serialization import default_document, migrate, store_from_document, store_to_document

logger = logging.getLogger(__name__)

_SHAPE_ERRORS = (ValueError, TypeError, KeyError, AttributeError)


def default_store() -> Store:
    return store_from_document(default_document())


def _parse_document(raw: str | bytes) -> Store:
    document = json.loads(raw)
    if not isinstance(document, dict):
        raise TypeError(f"Expected a JSON object, got {type(document).__name__}")
    return store_from_document(migrate(document))


class StorageAdapter:
    def __init__(
        self,
        session_factory: sessionmaker[Session] = SessionLocal,
        key: str = SETTINGS.storage_key,
        quota_bytes: int = SETTINGS.storage_quota_bytes,
        backup_dir: Path | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._key = key
        self._quota_bytes = quota_bytes
        self._backup_dir = backup_dir or PROJECT_ROOT / SETTINGS.backup_dir

    def load(self) -> Store:
        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntryModel, self._key)
                raw = entry.value if entry else None
            if not raw:
                return default_store()
            return _parse_document(raw)
        except (SQLAlchemyError, *_SHAPE_ERRORS) as exc:
            logger.error("Error loading chore data, using defaults: %s", exc)
            return default_store()

    def save(self, store: Store) -> None:
        payload = json.dumps(store_to_document(store))
        size = len(payload.encode("utf-8"))
        if size > self._quota_bytes:
            logger.error("Chore data is %d bytes, over the %d byte quota", size, self._quota_bytes)
            raise StorageQuotaExceeded(size, self._quota_bytes)

        try:
            with self._session_factory() as session:
                entry = session.get(StorageEntryModel, self._key)
                if entry:
                    entry.value = payload
                else:
                    session.add(StorageEntryModel(key=self._key, value=payload))
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Error saving chore data")
            raise StorageError("Error saving chore data") from exc

    def clear(self) -> None:
        with self._session_factory() as session:
            entry = session.get(StorageEntryModel, self._key)
            if not entry:
                return
            session.delete(entry)
            session.commit()

    def export_backup(self, directory: Path | None = None, today: date | None = None) -> Path:
        today = today or datetime.now(timezone.utc).date()
        target_dir = Path(directory) if directory else self._backup_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"chore-backup-{today.isoformat()}.json"
        document = store_to_document(self.load())
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        logger.info("Exported chore backup to %s", path)
        return path

    def import_backup(self, contents: str | bytes) -> Store:
        try:
            store = _parse_document(contents)
        except _SHAPE_ERRORS as exc:
            raise ImportFormatError("Invalid backup file format") from exc
        self.save(store)
        logger.info(
            "Imported backup with %d template(s) and %d instance(s)",
            len(store.templates),
            len(store.instances),
        )
        return store
