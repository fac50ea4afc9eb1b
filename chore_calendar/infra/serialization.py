from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from chore_calendar.domain.chore import create_chore
from chore_calendar.domain.dates import format_date_iso, parse_date
from chore_calendar.domain.entities import Chore, Store, StoreSettings, Tombstone

logger = logging.getLogger(__name__)

CURRENT_VERSION = 1


def default_document() -> dict[str, Any]:
    return {
        "version": CURRENT_VERSION,
        "templates": [],
        "instances": [],
        "deletedInstances": [],
        "settings": {"weekStartsOn": 0},
    }


def _migrate_v0_to_v1(document: dict[str, Any]) -> dict[str, Any]:
    return {
        "version": 1,
        "templates": document.get("templates") or [],
        "instances": document.get("instances") or document.get("chores") or [],
        "deletedInstances": document.get("deletedInstances") or [],
        "settings": document.get("settings") or {"weekStartsOn": 0},
    }


MIGRATIONS: list[tuple[int, Callable[[dict[str, Any]], dict[str, Any]]]] = [
    (1, _migrate_v0_to_v1),
]


def migrate(document: dict[str, Any]) -> dict[str, Any]:
    migrated = dict(document)
    for target, step in MIGRATIONS:
        version = migrated.get("version") or 0
        if version < target:
            logger.info("Migrating chore data from v%s to v%s", version, target)
            migrated = step(migrated)
    return migrated


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def chore_to_dict(chore: Chore) -> dict[str, Any]:
    recurrence = chore.recurrence
    return {
        "id": chore.id,
        "title": chore.title,
        "description": chore.description,
        "dueDate": format_date_iso(chore.due_date),
        "completed": chore.completed,
        "recurrence": {
            "type": str(recurrence.type),
            "startDate": format_date_iso(recurrence.start_date) if recurrence.start_date else None,
            "endDate": format_date_iso(recurrence.end_date) if recurrence.end_date else None,
            "parentId": recurrence.parent_id,
        },
        "isTemplate": chore.is_template,
        "createdAt": _format_timestamp(chore.created_at),
        "updatedAt": _format_timestamp(chore.updated_at),
    }


def chore_from_dict(data: dict[str, Any]) -> Chore:
    recurrence = data.get("recurrence") or {}
    return create_chore({
        "id": data.get("id"),
        "title": data.get("title"),
        "description": data.get("description"),
        "due_date": data.get("dueDate"),
        "completed": data.get("completed", False),
        "is_template": data.get("isTemplate", False),
        "recurrence": {
            "type": recurrence.get("type"),
            "start_date": recurrence.get("startDate"),
            "end_date": recurrence.get("endDate"),
            "parent_id": recurrence.get("parentId"),
        },
        "created_at": data.get("createdAt"),
        "updated_at": data.get("updatedAt"),
    })


def _tombstones_from_list(items: list[Any]) -> list[Tombstone]:
    tombstones = []
    for item in items:
        if not isinstance(item, dict) or not item.get("parentId") or not item.get("dueDate"):
            logger.warning("Ignoring unrecognised deleted-instance entry: %r", item)
            continue
        tombstones.append(Tombstone(parent_id=item["parentId"], due_date=parse_date(item["dueDate"])))
    return tombstones


def store_to_document(store: Store) -> dict[str, Any]:
    return {
        "version": store.version,
        "templates": [chore_to_dict(chore) for chore in store.templates],
        "instances": [chore_to_dict(chore) for chore in store.instances],
        "deletedInstances": [
            {"parentId": tombstone.parent_id, "dueDate": format_date_iso(tombstone.due_date)}
            for tombstone in store.deleted_instances
        ],
        "settings": {"weekStartsOn": store.settings.week_starts_on},
    }


def store_from_document(document: Any) -> Store:
    # Expects a document already at CURRENT_VERSION.
    if not isinstance(document, dict):
        raise TypeError(f"Expected a JSON object, got {type(document).__name__}")
    settings = document.get("settings") or {}
    return Store(
        version=int(document.get("version", CURRENT_VERSION)),
        templates=[chore_from_dict(item) for item in document.get("templates") or []],
        instances=[chore_from_dict(item) for item in document.get("instances") or []],
        deleted_instances=_tombstones_from_list(document.get("deletedInstances") or []),
        settings=StoreSettings(week_starts_on=int(settings.get("weekStartsOn", 0))),
    )
