from __future__ import annotations

"""Error taxonomy shared by every service.

Services raise these; ``sheetweaver.api`` turns them into ``ErrorResult``
values so callers never need a catch-all handler.
"""

__all__ = [
    "SheetweaverError",
    "InputFormatError",
    "SchemaMismatchError",
    "ExternalCollaboratorError",
    "UndoStateError",
    "MatchError",
]


class SheetweaverError(Exception):
    """Base class for all recoverable errors raised by the services."""


class InputFormatError(SheetweaverError):
    """Malformed reference, empty required dataset or undetectable header row."""


class SchemaMismatchError(SheetweaverError):
    """A required column (name, identifier) is absent from a dataset."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class ExternalCollaboratorError(SheetweaverError):
    """Read/write/auth failure reported by the spreadsheet backend.

    The backend message is kept verbatim. Nothing is retried and a write
    that fails half way is not rolled back.
    """


class UndoStateError(SheetweaverError):
    """Undo requested without a payload, or with one that no longer applies."""


class MatchError(InputFormatError):
    """A confirmed pair references a row that is not in its pool."""
