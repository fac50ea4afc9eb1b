from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Iterator, Mapping, Protocol

from chore_calendar.config import SETTINGS
from chore_calendar.domain.chore import (
    Clock,
    IdFactory,
    apply_patch,
    create_chore,
    is_recurring_instance,
    new_id,
    utcnow,
    validate_chore,
)
from chore_calendar.domain.dates import month_window, parse_date
from chore_calendar.domain.entities import Chore, Store, Tombstone
from chore_calendar.domain.errors import ChoreError

from .recurrence_engine import (
    generate_instances_for_range,
    is_scheduled_on,
    should_regenerate_instance,
)

logger = logging.getLogger(__name__)


class PersistenceAdapter(Protocol):
    def load(self) -> Store: ...

    def save(self, store: Store) -> None: ...


def _snapshot(store: Store) -> Store:
    return replace(
        store,
        templates=list(store.templates),
        instances=list(store.instances),
        deleted_instances=list(store.deleted_instances),
    )


class ChoreStore:
    # Every mutation is saved through the adapter; a failed save rolls memory back.
    def __init__(
        self,
        adapter: PersistenceAdapter,
        store: Store | None = None,
        *,
        id_factory: IdFactory = new_id,
        clock: Clock = utcnow,
    ) -> None:
        self._adapter = adapter
        self._store = store if store is not None else adapter.load()
        self._id_factory = id_factory
        self._clock = clock

    @property
    def store(self) -> Store:
        return self._store

    @property
    def templates(self) -> list[Chore]:
        return list(self._store.templates)

    @property
    def instances(self) -> list[Chore]:
        return list(self._store.instances)

    def find(self, chore_id: str) -> Chore | None:
        for chore in (*self._store.templates, *self._store.instances):
            if chore.id == chore_id:
                return chore
        return None

    def template_for(self, instance: Chore) -> Chore | None:
        parent_id = instance.recurrence.parent_id
        if parent_id is None:
            return None
        return next((t for t in self._store.templates if t.id == parent_id), None)

    def instances_between(self, start: date | str, end: date | str) -> list[Chore]:
        start, end = parse_date(start), parse_date(end)
        found = [chore for chore in self._store.instances if start <= chore.due_date < end]
        return sorted(found, key=lambda chore: (chore.due_date, chore.title.lower()))

    def add_chore(self, data: Mapping[str, Any]) -> Chore:
        validate_chore(data).raise_if_invalid()
        chore = create_chore(data, id_factory=self._id_factory, clock=self._clock)
        with self._mutation() as store:
            if chore.is_template:
                store.templates.append(chore)
            else:
                store.instances.append(chore)
        return chore

    def update_chore(self, chore_id: str, patch: Mapping[str, Any]) -> Chore | None:
        current = self.find(chore_id)
        if not current:
            return None
        updated = self._patched(current, patch)
        moved = is_recurring_instance(current) and updated.due_date != current.due_date
        if moved:
            updated = replace(updated, recurrence=replace(updated.recurrence, parent_id=None))
        with self._mutation():
            self._put(updated)
            if moved:
                # A rescheduled occurrence leaves the series like a detach.
                self._add_tombstone(current)
        return updated

    def update_template(self, template_id: str, patch: Mapping[str, Any]) -> Chore | None:
        current = next((t for t in self._store.templates if t.id == template_id), None)
        if not current:
            return None
        template = self._patched(current, patch)
        with self._mutation() as store:
            self._put(template)
            refreshed = dropped = 0
            kept = []
            for instance in store.instances:
                if instance.recurrence.parent_id != template.id or instance.completed:
                    kept.append(instance)
                    continue
                if not should_regenerate_instance(instance, template):
                    kept.append(instance)
                    continue
                if template.is_template and not is_scheduled_on(template, instance.due_date):
                    # Off the new cadence; the next generation fills the new dates.
                    dropped += 1
                    continue
                now = self._clock()
                kept.append(replace(
                    instance,
                    title=template.title,
                    description=template.description,
                    created_at=now,
                    updated_at=now,
                ))
                refreshed += 1
            store.instances = kept
        logger.debug(
            "Template %s: refreshed %d, dropped %d instance(s)", template.id, refreshed, dropped
        )
        return template

    def delete_chore(self, chore_id: str) -> Chore | None:
        chore = self.find(chore_id)
        if not chore:
            return None
        if chore.is_template:
            self.delete_recurring_series(chore.id)
            return chore
        with self._mutation() as store:
            store.instances = [c for c in store.instances if c.id != chore_id]
            if is_recurring_instance(chore):
                self._add_tombstone(chore)
        return chore

    def delete_recurring_series(self, template_id: str) -> int:
        with self._mutation() as store:
            before = len(store.templates) + len(store.instances)
            store.templates = [t for t in store.templates if t.id != template_id]
            store.instances = [
                c for c in store.instances if c.recurrence.parent_id != template_id
            ]
            store.deleted_instances = [
                t for t in store.deleted_instances if t.parent_id != template_id
            ]
            removed = before - len(store.templates) - len(store.instances)
        logger.info("Deleted series %s (%d record(s))", template_id, removed)
        return removed

    def detach_instance(self, chore_id: str) -> Chore | None:
        chore = self.find(chore_id)
        if not chore or not is_recurring_instance(chore):
            return None
        detached = replace(
            chore,
            recurrence=replace(chore.recurrence, parent_id=None),
            updated_at=self._clock(),
        )
        with self._mutation():
            self._put(detached)
            # The series must not fill the vacated date with a fresh copy.
            self._add_tombstone(chore)
        return detached

    def toggle_complete(self, chore_id: str) -> Chore | None:
        chore = self.find(chore_id)
        if not chore:
            return None
        toggled = replace(chore, completed=not chore.completed, updated_at=self._clock())
        with self._mutation():
            self._put(toggled)
        return toggled

    def generate_for_date_range(self, start: date | str, end: date | str) -> list[Chore]:
        generated = generate_instances_for_range(
            self._store.templates,
            start,
            end,
            self._store.instances,
            exclude=self._store.deleted_instances,
            id_factory=self._id_factory,
            clock=self._clock,
        )
        if generated:
            with self._mutation() as store:
                store.instances.extend(generated)
        return generated

    def generate_for_month(
        self, month: date | str, buffer_months: int = SETTINGS.generation_buffer_months
    ) -> list[Chore]:
        start, end = month_window(parse_date(month), buffer_months)
        return self.generate_for_date_range(start, end)

    def _patched(self, current: Chore, patch: Mapping[str, Any]) -> Chore:
        validate_chore({
            "title": patch.get("title", current.title),
            "due_date": patch.get("due_date", current.due_date),
        }).raise_if_invalid()
        return apply_patch(current, patch, clock=self._clock)

    def _put(self, chore: Chore) -> None:
        store = self._store
        target = store.templates if chore.is_template else store.instances
        for index, existing in enumerate(target):
            if existing.id == chore.id:
                target[index] = chore
                return
        # The template flag changed, so the record moves between collections.
        store.templates = [c for c in store.templates if c.id != chore.id]
        store.instances = [c for c in store.instances if c.id != chore.id]
        (store.templates if chore.is_template else store.instances).append(chore)

    def _add_tombstone(self, chore: Chore) -> None:
        tombstone = Tombstone(parent_id=chore.recurrence.parent_id, due_date=chore.due_date)
        if tombstone not in self._store.deleted_instances:
            self._store.deleted_instances.append(tombstone)

    @contextmanager
    def _mutation(self) -> Iterator[Store]:
        snapshot = _snapshot(self._store)
        try:
            yield self._store
            self._adapter.save(self._store)
        except ChoreError:
            self._store.templates = snapshot.templates
            self._store.instances = snapshot.instances
            self._store.deleted_instances = snapshot.deleted_instances
            raise
