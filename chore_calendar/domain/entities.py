from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .enums import RecurrenceType


@dataclass(frozen=True)
class Recurrence:
    type: RecurrenceType | str = RecurrenceType.NONE
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    parent_id: str | None = None


@dataclass(frozen=True)
class Chore:
    id: str
    title: str
    description: str
    due_date: date
    completed: bool
    is_template: bool
    recurrence: Recurrence
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Tombstone:
    parent_id: str
    due_date: date


@dataclass(frozen=True)
class StoreSettings:
    week_starts_on: int = 0


@dataclass
class Store:
    version: int = 1
    templates: list[Chore] = field(default_factory=list)
    instances: list[Chore] = field(default_factory=list)
    deleted_instances: list[Tombstone] = field(default_factory=list)
    settings: StoreSettings = field(default_factory=StoreSettings)
