from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

from .dates import is_iso_date, parse_date
from .entities import Chore, Recurrence
from .enums import RecurrenceType, ValidationErrorCode
from .errors import ChoreValidationError, UnknownFieldError

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]

RECURRENCE_FIELDS = ("type", "start_date", "end_date", "parent_id")
CHORE_FIELDS = (
    "id",
    "title",
    "description",
    "due_date",
    "completed",
    "is_template",
    "recurrence",
    "created_at",
    "updated_at",
)
PATCHABLE_FIELDS = ("title", "description", "due_date", "completed", "is_template", "recurrence")
# The template back-reference only changes through detach.
PATCHABLE_RECURRENCE_FIELDS = ("type", "start_date", "end_date")

ERROR_MESSAGES = {
    ValidationErrorCode.EMPTY_TITLE: "Title is required",
    ValidationErrorCode.MISSING_DATE: "Due date is required",
    ValidationErrorCode.INVALID_DATE_FORMAT: "Invalid date format",
}


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: ValidationErrorCode | None = None

    @property
    def message(self) -> str | None:
        return ERROR_MESSAGES.get(self.error) if self.error else None

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise ChoreValidationError(self.error, self.message)


def coerce_recurrence_type(value: Any) -> RecurrenceType | str:
    if not value:
        return RecurrenceType.NONE
    try:
        return RecurrenceType(value)
    except ValueError:
        # Unknown cadences are kept as-is; the engine treats them as no-ops.
        return str(value)


def coerce_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_date(value: date | str | None) -> Optional[date]:
    return parse_date(value) if value else None


def _check_fields(data: Mapping[str, Any], allowed: tuple[str, ...]) -> None:
    unknown = [key for key in data if key not in allowed]
    if unknown:
        raise UnknownFieldError(unknown)


def merge_recurrence(base: Recurrence, patch: Mapping[str, Any] | Recurrence | None) -> Recurrence:
    if patch is None:
        return base
    if isinstance(patch, Recurrence):
        return patch
    _check_fields(patch, RECURRENCE_FIELDS)
    return Recurrence(
        type=coerce_recurrence_type(patch["type"]) if "type" in patch else base.type,
        start_date=_optional_date(patch["start_date"]) if "start_date" in patch else base.start_date,
        end_date=_optional_date(patch["end_date"]) if "end_date" in patch else base.end_date,
        parent_id=(patch["parent_id"] or None) if "parent_id" in patch else base.parent_id,
    )


def create_chore(
    data: Mapping[str, Any] | None = None,
    *,
    id_factory: IdFactory = new_id,
    clock: Clock = utcnow,
) -> Chore:
    data = data or {}
    _check_fields(data, CHORE_FIELDS)
    now = clock()
    return Chore(
        id=data.get("id") or id_factory(),
        title=data.get("title") or "",
        description=data.get("description") or "",
        due_date=parse_date(data.get("due_date") or now.date()),
        completed=bool(data.get("completed", False)),
        is_template=bool(data.get("is_template", False)),
        recurrence=merge_recurrence(Recurrence(), data.get("recurrence")),
        created_at=coerce_timestamp(data.get("created_at") or now),
        updated_at=coerce_timestamp(data.get("updated_at") or now),
    )


def apply_patch(chore: Chore, patch: Mapping[str, Any], *, clock: Clock = utcnow) -> Chore:
    _check_fields(patch, PATCHABLE_FIELDS)
    changes: dict[str, Any] = {"updated_at": clock()}
    if "title" in patch:
        changes["title"] = patch["title"] or ""
    if "description" in patch:
        changes["description"] = patch["description"] or ""
    if "due_date" in patch:
        changes["due_date"] = parse_date(patch["due_date"])
    if "completed" in patch:
        changes["completed"] = bool(patch["completed"])
    if "is_template" in patch:
        changes["is_template"] = bool(patch["is_template"])
    if "recurrence" in patch:
        recurrence = patch["recurrence"]
        if isinstance(recurrence, Recurrence):
            if recurrence.parent_id != chore.recurrence.parent_id:
                raise UnknownFieldError(["parent_id"])
        else:
            _check_fields(recurrence or {}, PATCHABLE_RECURRENCE_FIELDS)
        changes["recurrence"] = merge_recurrence(chore.recurrence, recurrence)
    return replace(chore, **changes)


def validate_chore(chore: Chore | Mapping[str, Any]) -> ValidationResult:
    if isinstance(chore, Chore):
        title, due_date = chore.title, chore.due_date
    else:
        title, due_date = chore.get("title"), chore.get("due_date")

    if not title or not str(title).strip():
        return ValidationResult(False, ValidationErrorCode.EMPTY_TITLE)
    if not due_date:
        return ValidationResult(False, ValidationErrorCode.MISSING_DATE)
    if isinstance(due_date, datetime):
        return ValidationResult(False, ValidationErrorCode.INVALID_DATE_FORMAT)
    if isinstance(due_date, date):
        return ValidationResult(True)
    if not isinstance(due_date, str) or not is_iso_date(due_date):
        return ValidationResult(False, ValidationErrorCode.INVALID_DATE_FORMAT)
    try:
        date.fromisoformat(due_date)
    except ValueError:
        return ValidationResult(False, ValidationErrorCode.INVALID_DATE_FORMAT)
    return ValidationResult(True)


def is_recurring_template(chore: Chore) -> bool:
    return chore.is_template is True


def is_recurring_instance(chore: Chore) -> bool:
    return chore.recurrence.parent_id is not None
