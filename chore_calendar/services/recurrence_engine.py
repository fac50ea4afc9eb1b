from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Iterator, Optional

from chore_calendar.domain.chore import Clock, IdFactory, new_id, utcnow
from chore_calendar.domain.dates import add_months, parse_date
from chore_calendar.domain.entities import Chore, Recurrence, Tombstone
from chore_calendar.domain.enums import RecurrenceType

logger = logging.getLogger(__name__)

# Safety bound on cadence steps per template per call.
MAX_ITERATIONS = 500

_STEP_DAYS = {
    RecurrenceType.DAILY: 1,
    RecurrenceType.WEEKLY: 7,
    RecurrenceType.BIWEEKLY: 14,
}

OccurrenceKey = tuple[str, date]


def get_next_occurrence(current: date | str, recurrence_type: RecurrenceType | str) -> date:
    return _advance(parse_date(current), recurrence_type, 1)


def is_cadence(recurrence_type: RecurrenceType | str) -> bool:
    return recurrence_type in _STEP_DAYS or recurrence_type == RecurrenceType.MONTHLY


def _advance(anchor: date, recurrence_type: RecurrenceType | str, steps: int) -> date:
    if recurrence_type in _STEP_DAYS:
        return anchor + timedelta(days=_STEP_DAYS[recurrence_type] * steps)
    if recurrence_type == RecurrenceType.MONTHLY:
        return add_months(anchor, steps)
    return anchor


def _first_step(anchor: date, recurrence_type: RecurrenceType | str, range_start: date) -> int:
    # Skip the part of the grid that lies wholly before the window. The
    # result never overshoots, so the grid stays aligned to the anchor.
    if range_start <= anchor:
        return 0
    if recurrence_type in _STEP_DAYS:
        return (range_start - anchor).days // _STEP_DAYS[recurrence_type]
    months = (range_start.year - anchor.year) * 12 + range_start.month - anchor.month
    return max(months - 1, 0)


def anchor_date(template: Chore) -> date:
    return parse_date(template.recurrence.start_date or template.due_date)


def occurrence_dates(template: Chore, range_start: date | str, range_end: date | str) -> Iterator[date]:
    # Dates are anchor + n * step, so monthly day-31 anchors clamp without drifting.
    recurrence_type = template.recurrence.type
    if not template.is_template or not is_cadence(recurrence_type):
        return
    start = parse_date(range_start)
    end = parse_date(range_end)
    anchor = anchor_date(template)

    first = _first_step(anchor, recurrence_type, start)
    for step in range(first, first + MAX_ITERATIONS):
        current = _advance(anchor, recurrence_type, step)
        if current >= end:
            return
        if current >= start:
            yield current


def is_scheduled_on(template: Chore, due_date: date | str) -> bool:
    day = parse_date(due_date)
    return any(True for _ in occurrence_dates(template, day, day + timedelta(days=1)))


def occurrence_key(chore: Chore) -> Optional[OccurrenceKey]:
    if chore.recurrence.parent_id is None:
        return None
    return chore.recurrence.parent_id, chore.due_date


def _existing_keys(existing_instances: Iterable[Chore], exclude: Iterable[Tombstone]) -> set[OccurrenceKey]:
    keys = {key for key in map(occurrence_key, existing_instances) if key is not None}
    keys.update((tombstone.parent_id, tombstone.due_date) for tombstone in exclude)
    return keys


def build_instance(template: Chore, due_date: date, *, id_factory: IdFactory = new_id, clock: Clock = utcnow) -> Chore:
    now = clock()
    return Chore(
        id=id_factory(),
        title=template.title,
        description=template.description,
        due_date=due_date,
        completed=False,
        is_template=False,
        recurrence=Recurrence(type=RecurrenceType.NONE, parent_id=template.id),
        created_at=now,
        updated_at=now,
    )


def generate_instances(
    template: Chore,
    range_start: date | str,
    range_end: date | str,
    existing_instances: Iterable[Chore] = (),
    *,
    exclude: Iterable[Tombstone] = (),
    id_factory: IdFactory = new_id,
    clock: Clock = utcnow,
) -> list[Chore]:
    if not template.is_template or template.recurrence.type == RecurrenceType.NONE:
        return []

    taken = _existing_keys(existing_instances, exclude)
    instances = []
    for due_date in occurrence_dates(template, range_start, range_end):
        if (template.id, due_date) in taken:
            continue
        instances.append(build_instance(template, due_date, id_factory=id_factory, clock=clock))
    return instances


def generate_instances_for_range(
    templates: Iterable[Chore],
    range_start: date | str,
    range_end: date | str,
    existing_instances: Iterable[Chore] = (),
    *,
    exclude: Iterable[Tombstone] = (),
    id_factory: IdFactory = new_id,
    clock: Clock = utcnow,
) -> list[Chore]:
    existing_instances = list(existing_instances)
    exclude = list(exclude)
    generated: list[Chore] = []
    for template in templates:
        if not template.is_template or template.recurrence.type == RecurrenceType.NONE:
            continue
        generated.extend(
            generate_instances(
                template,
                range_start,
                range_end,
                existing_instances,
                exclude=exclude,
                id_factory=id_factory,
                clock=clock,
            )
        )
    logger.debug("Generated %d instance(s) for %s..%s", len(generated), range_start, range_end)
    return generated


def should_regenerate_instance(instance: Chore, template: Chore | None) -> bool:
    if instance.recurrence.parent_id is None or template is None:
        return False
    return template.updated_at > instance.created_at
