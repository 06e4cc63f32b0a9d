from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import InputFormatError
from ..excel.reader import SUPPORTED_SUFFIXES, cell_text, read_workbook
from ..logging.issue_log import IssueLogBuffer
from ..models.dataset import WorkbookGrid
from ..models.student_record import RecordKind, ScanResult, SheetRejection, StudentRecord
from .progress import ProgressTracker

"""Duplicate / empty-field scanner.

Per sheet:
1. Find the header row in the first 20 rows: the first row holding a
   "nama" column (substring match) or an exact "nis" / "no. induk" / "nisn".
2. Reject the sheet when it lacks a name column or both id columns.
3. For every row with a name, take NIS (or NISN when NIS is blank) as the
   id and flag empty ids and empty birth dates.

Ids are grouped across every workbook of the scan; each group with two or
more rows reports all of its members.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "HeaderInfo",
    "find_scan_header",
    "scan_workbooks",
    "scan_files",
    "collect_workbook_paths",
]

SCAN_HEADER_LIMIT = 20
NIS_HEADERS = ("nis", "no. induk")
NISN_HEADERS = ("nisn",)
DOB_MARKERS = ("tanggal lahir", "tgl lahir")
MISSING_NAME = "Nama"
MISSING_ID = "NIS/NISN"


@dataclass(frozen=True)
class HeaderInfo:
    row: int  # 0-based header row
    name: int
    nis: int  # -1 when absent
    nisn: int
    dob: int


def _index(cells: list[str], predicate: Any) -> int:
    for j, text in enumerate(cells):
        if predicate(text):
            return j
    return -1


def find_scan_header(grid: Sequence[Sequence[Any]]) -> HeaderInfo | list[str]:
    """Locate the header row, or return the list of missing column labels."""
    for i, row in enumerate(grid[:SCAN_HEADER_LIMIT]):
        cells = [cell_text(c).lower() for c in row]
        nis = _index(cells, lambda h: h in NIS_HEADERS)
        nisn = _index(cells, lambda h: h in NISN_HEADERS)
        name = _index(cells, lambda h: "nama" in h)
        if name == -1 and nis == -1 and nisn == -1:
            continue
        missing = []
        if name == -1:
            missing.append(MISSING_NAME)
        if nis == -1 and nisn == -1:
            missing.append(MISSING_ID)
        if missing:
            return missing
        dob = _index(cells, lambda h: any(m in h for m in DOB_MARKERS))
        return HeaderInfo(row=i, name=name, nis=nis, nisn=nisn, dob=dob)
    return [MISSING_NAME, MISSING_ID]


def _cell(row: Sequence[Any], idx: int) -> Any:
    if idx < 0 or idx >= len(row):
        return ""
    return row[idx]


def _is_dob_empty(value: Any) -> bool:
    text = cell_text(value)
    return text == "" or text.startswith("#")


class _Scan:
    """Accumulator shared by every sheet of one scan."""

    def __init__(self) -> None:
        self.groups: dict[str, list[StudentRecord]] = {}
        self.empty_id: list[StudentRecord] = []
        self.empty_dob: list[StudentRecord] = []
        self.rejected: list[SheetRejection] = []
        self.sheet_count = 0
        self.file_count = 0
        self.unreadable: list[str] = []

    def scan_sheet(self, file_name: str, sheet_name: str, grid: Sequence[Sequence[Any]]) -> bool:
        if not grid:
            return False
        header = find_scan_header(grid)
        if isinstance(header, list):
            self.rejected.append(SheetRejection(file_name, sheet_name, header))
            return False
        self.sheet_count += 1

        for i in range(header.row + 1, len(grid)):
            row = grid[i]
            name = cell_text(_cell(row, header.name))
            # repeated header lines inside the data are not students
            if not name or name.lower() == "nama":
                continue
            nis = cell_text(_cell(row, header.nis))
            nisn = cell_text(_cell(row, header.nisn))
            ident, kind = (nis, RecordKind.NIS) if nis else (nisn, RecordKind.NISN)

            if header.dob != -1 and _is_dob_empty(_cell(row, header.dob)):
                self.empty_dob.append(
                    StudentRecord(RecordKind.EMPTY_DOB, "N/A", name, file_name, sheet_name, i + 1)
                )
            if not any(ch.isdigit() for ch in ident):
                self.empty_id.append(
                    StudentRecord(RecordKind.EMPTY_ID, ident or "N/A", name, file_name, sheet_name, i + 1)
                )
                continue
            self.groups.setdefault(ident, []).append(
                StudentRecord(kind, ident, name, file_name, sheet_name, i + 1)
            )
        return True

    def scan_workbook(self, workbook: WorkbookGrid) -> None:
        valid = False
        for sheet_name, grid in workbook.sheets.items():
            if self.scan_sheet(workbook.name, sheet_name, grid):
                valid = True
        if valid:
            self.file_count += 1

    def result(self) -> ScanResult:
        duplicates = [r for members in self.groups.values() if len(members) >= 2 for r in members]
        return ScanResult(
            duplicates=duplicates,
            empty_id=self.empty_id,
            empty_dob=self.empty_dob,
            scanned_sheet_count=self.sheet_count,
            rejected=self.rejected,
            scanned_file_count=self.file_count,
            unreadable_files=self.unreadable,
        )


def _log_rejections(rejected: Iterable[SheetRejection], issue_log: IssueLogBuffer | None) -> None:
    for r in rejected:
        logger.warning("%s: %s", r.source_file, r.message)
        if issue_log is not None:
            issue_log.add(r.source_file, r.source_sheet, "MISSING_COLUMNS", r.message)


def scan_workbooks(
    workbooks: Iterable[WorkbookGrid],
    issue_log: IssueLogBuffer | None = None,
) -> ScanResult:
    """Scan already-read workbooks. Rejected sheets are skipped, never fatal."""
    scan = _Scan()
    for workbook in workbooks:
        scan.scan_workbook(workbook)
    _log_rejections(scan.rejected, issue_log)
    return scan.result()


def collect_workbook_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories (non-recursive) into supported workbook files."""
    out: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            out.extend(
                sorted(c for c in p.iterdir() if c.is_file() and c.suffix.lower() in SUPPORTED_SUFFIXES)
            )
        elif p.exists():
            out.append(p)
        else:
            raise InputFormatError(f"path not found: {p}")
    return out


def scan_files(paths: Sequence[Path], issue_log: IssueLogBuffer | None = None) -> ScanResult:
    """Read and scan workbook files.

    An unreadable file is logged (FILE_READ_ERROR) and skipped; the scan
    continues with the next file.
    """
    if not paths:
        raise InputFormatError("no workbook files to scan")
    scan = _Scan()
    with ProgressTracker(len(paths)) as progress:
        for path in paths:
            progress.start_file(path)
            try:
                workbook = read_workbook(path)
            except (OSError, ValueError, InputFormatError) as e:
                logger.error("failed to read %s: %s", path.name, e)
                if issue_log is not None:
                    issue_log.add(path.name, "", "FILE_READ_ERROR", str(e))
                scan.unreadable.append(path.name)
                progress.finish_file()
                continue
            scan.scan_workbook(workbook)
            progress.finish_file(sheets=scan.sheet_count)
    _log_rejections(scan.rejected, issue_log)
    return scan.result()
