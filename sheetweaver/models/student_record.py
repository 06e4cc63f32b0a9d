from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Duplicate scan models.

A ``StudentRecord`` is created for every scanned row that carries a name and
lives only until the scan result is rendered.
"""

__all__ = [
    "RecordKind",
    "StudentRecord",
    "SheetRejection",
    "ScanResult",
]


class RecordKind(str, Enum):
    """Why a record was reported."""
    NIS = "NIS"  # duplicate, id taken from the NIS column
    NISN = "NISN"  # duplicate, id taken from the NISN column
    EMPTY_ID = "ID Kosong"
    EMPTY_DOB = "TTL Kosong"


@dataclass(frozen=True)
class StudentRecord:
    kind: RecordKind
    id: str
    name: str
    source_file: str
    source_sheet: str
    row: int = -1  # 1-based row inside the sheet


@dataclass(frozen=True)
class SheetRejection:
    """A sheet skipped because a required column could not be found."""
    source_file: str
    source_sheet: str
    missing: list[str]

    @property
    def message(self) -> str:
        return (
            f"Sheet '{self.source_sheet}' is missing required column(s): "
            f"{', '.join(self.missing)}."
        )


@dataclass(frozen=True)
class ScanResult:
    duplicates: list[StudentRecord]
    empty_id: list[StudentRecord]
    empty_dob: list[StudentRecord]
    scanned_sheet_count: int
    rejected: list[SheetRejection] = field(default_factory=list)
    scanned_file_count: int = 0  # workbooks with at least one valid sheet
    unreadable_files: list[str] = field(default_factory=list)
