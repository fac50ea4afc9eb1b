from __future__ import annotations

from .enums import ValidationErrorCode


class ChoreError(Exception):
    pass


class ChoreValidationError(ChoreError, ValueError):
    def __init__(self, code: ValidationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class UnknownFieldError(ChoreError, KeyError):
    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Unknown chore field(s): {', '.join(sorted(fields))}")
        self.fields = fields

    def __str__(self) -> str:
        return self.args[0]


class StorageError(ChoreError):
    pass


class StorageQuotaExceeded(StorageError):
    def __init__(self, size: int, quota: int) -> None:
        super().__init__("Storage quota exceeded. Please delete some old chores.")
        self.size = size
        self.quota = quota


class ImportFormatError(StorageError):
    pass
