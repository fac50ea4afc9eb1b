from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

from chore_calendar.domain.chore import create_chore
from chore_calendar.domain.entities import Chore, Store
from chore_calendar.domain.enums import RecurrenceType
from chore_calendar.infra.serialization import store_to_document

T0 = datetime(2026, 2, 1, tzinfo=timezone.utc)


def counter_ids(prefix: str = "chore"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


class TickingClock:
    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


def make_template(**overrides: Any) -> Chore:
    recurrence = {
        "type": RecurrenceType.WEEKLY,
        "start_date": "2026-02-01",
        "end_date": None,
        "parent_id": None,
    }
    recurrence.update(overrides.pop("recurrence", {}))
    data = {
        "id": "template-1",
        "title": "Take out bins",
        "description": "",
        "due_date": "2026-02-01",
        "is_template": True,
        "recurrence": recurrence,
        "created_at": T0,
        "updated_at": T0,
    }
    data.update(overrides)
    return create_chore(data)


def make_instance(parent_id: str, due_date: str, **overrides: Any) -> Chore:
    data = {
        "id": f"{parent_id}-{due_date}",
        "title": "Take out bins",
        "due_date": due_date,
        "recurrence": {"parent_id": parent_id},
        "created_at": T0,
        "updated_at": T0,
    }
    data.update(overrides)
    return create_chore(data)


class FakeAdapter:
    def __init__(self, store: Store | None = None) -> None:
        self._store = store or Store()
        self.saved: list[dict] = []
        self.fail_with: Exception | None = None

    def load(self) -> Store:
        return self._store

    def save(self, store: Store) -> None:
        if self.fail_with:
            raise self.fail_with
        self.saved.append(store_to_document(store))
