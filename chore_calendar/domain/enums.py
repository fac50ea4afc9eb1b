from __future__ import annotations

from enum import StrEnum


class RecurrenceType(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class ValidationErrorCode(StrEnum):
    EMPTY_TITLE = "empty_title"
    MISSING_DATE = "missing_date"
    INVALID_DATE_FORMAT = "invalid_date_format"
