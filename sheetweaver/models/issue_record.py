from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""IssueRecord model for the structured issue log.

One record per rejected sheet or unreadable file. ``row`` is -1 when the
problem concerns the whole sheet or file rather than a single row.
"""

__all__ = [
    "IssueRecord",
    "ISSUE_TYPES",
]

ISSUE_TYPES = (
    "MISSING_COLUMNS",
    "FILE_READ_ERROR",
    "HEADER_NOT_FOUND",
)


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: workbook file name
        sheet: sheet name, empty for file-level issues
        row: 1-based row, -1 when unknown
        error_type: one of ISSUE_TYPES
        message: human readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
