from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from sheetweaver.models.issue_record import IssueRecord

"""Issue log buffering.

Rejected sheets and unreadable workbooks are buffered during a scan and
written as JSON Lines to ``logs/issues-YYYYMMDD-HHMMSS.log`` (UTC stamp) on
flush. The file is only created when there is something to write.
"""

__all__ = [
    "IssueRecord",
    "IssueLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    """In-memory buffer of issue records; ``flush`` appends JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[IssueRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"issues-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> tuple[IssueRecord, ...]:
        return tuple(self._records)

    def append(self, record: IssueRecord) -> None:
        self._records.append(record)

    def add(self, file: str, sheet: str, error_type: str, message: str, row: int = -1) -> IssueRecord:
        record = IssueRecord.create(file, sheet, row, error_type, message)
        self._records.append(record)
        return record

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None if nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
