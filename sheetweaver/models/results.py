from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .sheet_change import ChangeRecord, ImportUndo, UpdateUndo

"""Result types returned by the sheet operations and the API facade."""

__all__ = [
    "ErrorResult",
    "SheetInfo",
    "UpdatePreview",
    "UpdateResult",
    "ImportResult",
    "UndoResult",
]


@dataclass(frozen=True)
class ErrorResult:
    """Returned by ``sheetweaver.api`` instead of raising."""
    error: str
    error_type: str = "SheetweaverError"
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SheetInfo:
    title: str
    spreadsheet_id: str


@dataclass(frozen=True)
class UpdatePreview:
    changes: list[ChangeRecord]
    unmatched_titles: list[str]  # candidate titles with no sheet row

    @property
    def no_op(self) -> bool:
        return not self.changes


@dataclass(frozen=True)
class UpdateResult:
    updated_count: int
    changes: list[ChangeRecord]
    undo: UpdateUndo | None
    no_op: bool = False
    message: str = ""


@dataclass(frozen=True)
class ImportResult:
    imported_count: int
    duplicate_count: int
    duplicates: list[str]  # titles skipped because they already exist
    undo: ImportUndo | None
    no_op: bool = False
    message: str = ""


@dataclass(frozen=True)
class UndoResult:
    kind: str
    affected: int  # rows deleted or rows reverted
    message: str
