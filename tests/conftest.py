# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from sheetweaver.errors import ExternalCollaboratorError
from sheetweaver.logging.init import reset_logging
from sheetweaver.sheets.a1 import parse_a1
from sheetweaver.sheets.backend import SheetProperties, SheetRef


class FakeSheetBackend:
    """In-memory stand-in for one spreadsheet with a single sheet.

    Mirrors the Sheets API where it matters: trailing empty rows/cells are
    not returned, writes past ``row_count`` fail, and every mutating call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        rows: list[list[Any]] | None = None,
        *,
        title: str = "Helpdesk 2025",
        sheet_name: str = "All Case",
        sheet_id: Any = 1234,
        row_count: int | None = None,
    ) -> None:
        self.title = title
        self.sheet_name = sheet_name
        self.sheet_id = sheet_id
        self.grid: list[list[Any]] = [list(r) for r in (rows or [])]
        self.row_count = row_count if row_count is not None else max(len(self.grid), 1000)
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: str | None = None

    # helpers for assertions
    def cell(self, col: str, row: int) -> Any:
        a = parse_a1(f"{col}{row}")
        if row - 1 >= len(self.grid):
            return ""
        line = self.grid[row - 1]
        return line[a.start_col] if a.start_col < len(line) else ""

    def _check(self) -> None:
        if self.fail_with:
            raise ExternalCollaboratorError(self.fail_with)

    def _check_sheet(self, sheet: str | None) -> None:
        if sheet is not None and sheet != self.sheet_name:
            raise ExternalCollaboratorError(f"Unable to parse range: {sheet}")

    # SheetBackend
    def get_title(self) -> str:
        self._check()
        return self.title

    def get_properties(self, sheet_name: str) -> SheetProperties | None:
        self._check()
        if sheet_name.strip().lower() != self.sheet_name.strip().lower():
            return None
        return SheetProperties(sheet_id=self.sheet_id, title=self.sheet_name, row_count=self.row_count)

    def read_range(self, a1: str) -> list[list[Any]]:
        self._check()
        r = parse_a1(a1)
        self._check_sheet(r.sheet)
        first = (r.start_row or 1) - 1
        last = r.end_row if r.end_row is not None else len(self.grid)
        out: list[list[Any]] = []
        for line in self.grid[first:last]:
            cells = list(line[r.start_col:r.end_col + 1])
            while cells and cells[-1] in ("", None):
                cells.pop()
            out.append(cells)
        while out and not out[-1]:
            out.pop()
        return out

    def read_ranges(self, ranges: Sequence[str]) -> list[list[list[Any]]]:
        return [self.read_range(r) for r in ranges]

    def write_range(self, a1: str, values: list[list[Any]]) -> str | None:
        self._check()
        r = parse_a1(a1)
        self._check_sheet(r.sheet)
        start = r.start_row or 1
        end = start + len(values) - 1
        if end > self.row_count:
            raise ExternalCollaboratorError(
                f"Range ({self.sheet_name}!A{end}) exceeds grid limits. Max rows: {self.row_count}"
            )
        self.calls.append(("write_range", a1))
        width = 0
        for i, row in enumerate(values):
            self._put(start + i, r.start_col, row)
            width = max(width, len(row))
        last_col = chr(ord("A") + r.start_col + width - 1)
        first_col = chr(ord("A") + r.start_col)
        return f"'{self.sheet_name}'!{first_col}{start}:{last_col}{end}"

    def _put(self, row: int, col: int, values: Sequence[Any]) -> None:
        while len(self.grid) < row:
            self.grid.append([])
        line = self.grid[row - 1]
        while len(line) < col + len(values):
            line.append("")
        for j, v in enumerate(values):
            line[col + j] = v

    def append_rows(self, sheet_id: int, count: int) -> None:
        self._check()
        self.calls.append(("append_rows", (sheet_id, count)))
        self.row_count += count

    def delete_rows(self, sheet_id: int, start_index: int, end_index: int) -> None:
        self._check()
        self.calls.append(("delete_rows", (sheet_id, start_index, end_index)))
        del self.grid[start_index:end_index]
        self.row_count -= end_index - start_index

    def batch_update(self, updates: Sequence[tuple[str, list[list[Any]]]]) -> None:
        self._check()
        self.calls.append(("batch_update", [a1 for a1, _ in updates]))
        for a1, values in updates:
            r = parse_a1(a1)
            self._check_sheet(r.sheet)
            for i, row in enumerate(values):
                self._put((r.start_row or 1) + i, r.start_col, row)


def all_case_row(
    no: Any = "",
    status: str = "",
    title: str = "",
    resolved: str = "",
    ticket_ref: str = "",
    client: str = "SMA 1",
) -> list[Any]:
    """One A..T row of the "All Case" sheet."""
    row: list[Any] = [""] * 20
    row[0] = no
    row[4] = client
    row[6] = status
    row[12] = title
    row[14] = resolved
    row[19] = ticket_ref
    return row


ALL_CASE_HEADER = [
    "No", "Date", "Month", "Ticket Number", "Client Name", "Customer Name", "Status",
    "Kolom kosong1", "Ticket Category", "Module", "Detail Module", "Created At",
    "Title", "Kolom kosong2", "Resolved At", "", "", "Status Case 2", "", "Ticket OP",
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """spreadsheet:
  url: "https://docs.google.com/spreadsheets/d/1AbC-dEf_123/edit#gid=0"
  sheet_name: "All Case"
credentials:
  file: "credentials/gcp-credentials.json"
convert:
  default_status: "L1"
  status_map:
    escalated: "L3"
merge:
  name_aliases: ["nama", "name", "username", "nama lengkap"]
timezone: Asia/Jakarta
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheetweaver.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sheet_ref() -> SheetRef:
    return SheetRef(collection_id="1AbC-dEf_123", sheet_name="All Case")


@pytest.fixture()
def fake_backend() -> FakeSheetBackend:
    """Sheet with a header row and three cases (rows 2-4)."""
    return FakeSheetBackend(
        [
            ALL_CASE_HEADER,
            all_case_row(1, "L2", "Login gagal #41", "", "OP-7"),
            all_case_row(2, "L2", "Issue #42 nilai rapor", ""),
            all_case_row(3, "Solved", "Tagihan dobel #43", "31/7/2024 7:38", "OP-9"),
        ],
        row_count=10,
    )


@pytest.fixture()
def make_workbook(temp_workdir: Path):
    """Write sheets (name -> list of rows, first row may be a title) to an xlsx."""

    def _make(name: str, sheets: dict[str, list[list[Any]]]) -> Path:
        path = temp_workdir / "data" / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path

    return _make


@pytest.fixture()
def backend_factory():
    """The FakeSheetBackend class, for tests that need a custom sheet."""
    return FakeSheetBackend


@pytest.fixture()
def case_row():
    return all_case_row


@pytest.fixture()
def case_header() -> list[str]:
    return list(ALL_CASE_HEADER)
