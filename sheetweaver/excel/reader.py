from __future__ import annotations

import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from sheetweaver.errors import InputFormatError
from sheetweaver.models.dataset import Row, TabularDataset, WorkbookGrid

"""Workbook reader.

Every sheet is read raw (``header=None``, ``dtype=object``) so that callers
can detect the header row themselves; blank cells become "". The first row
containing one of the header keywords within ``HEADER_SCAN_LIMIT`` rows is
taken as the header, falling back to the first row.
"""

__all__ = [
    "HEADER_KEYWORDS",
    "HEADER_SCAN_LIMIT",
    "SUPPORTED_SUFFIXES",
    "read_workbook",
    "detect_header_row",
    "grid_to_dataset",
    "read_dataset",
    "cell_text",
]

HEADER_KEYWORDS = ("nama", "name", "username", "nisn", "nis", "id", "tahun ajaran", "year")
HEADER_SCAN_LIMIT = 20
SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".xlsm", ".csv")


def cell_text(value: Any) -> str:
    """Stringify a cell the way a user would type it back (12345.0 -> '12345')."""
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return ""
        return value.strftime("%Y-%m-%d")
    return str(value).strip()


def _clean(value: Any) -> Any:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        # list-like cells; pd.isna returns an array
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _frame_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    return [[_clean(v) for v in raw] for raw in df.itertuples(index=False, name=None)]


def read_workbook(path: Path, target_sheets: Iterable[str] | None = None) -> WorkbookGrid:
    """Read every sheet of a workbook into raw cell grids.

    Parameters
    ----------
    path: workbook path (.xlsx/.xls/.xlsm or .csv)
    target_sheets: restrict to these sheet names (None = all sheets)

    A CSV file yields a single sheet named after the file stem.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise InputFormatError(f"unsupported file type: {path.name}")

    sheets: dict[str, list[list[Any]]] = {}
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=object, keep_default_na=False)
            sheets[path.stem] = _frame_to_grid(df)
            return WorkbookGrid(name=path.name, sheets=sheets)

        xls = pd.ExcelFile(path)
        for name in xls.sheet_names:
            if target_sheets is not None and str(name) not in target_sheets:
                continue
            df = xls.parse(name, header=None, dtype=object)
            sheets[str(name)] = _frame_to_grid(df)
    except pd.errors.EmptyDataError:
        return WorkbookGrid(name=path.name, sheets={path.stem: []})
    except (ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
        raise InputFormatError(f"cannot read {path.name}: {e}") from e
    return WorkbookGrid(name=path.name, sheets=sheets)


def detect_header_row(
    grid: Sequence[Sequence[Any]],
    keywords: Iterable[str] = HEADER_KEYWORDS,
    limit: int = HEADER_SCAN_LIMIT,
) -> int | None:
    """Index of the first row (within ``limit``) holding a header keyword.

    A cell matches when its trimmed lower-cased text equals a keyword.
    Falls back to row 0 when it has any non-blank cell, else None.
    """
    wanted = {k.strip().lower() for k in keywords}
    for i, row in enumerate(grid[:limit]):
        if any(cell_text(c).lower() in wanted for c in row):
            return i
    if grid and any(cell_text(c) for c in grid[0]):
        return 0
    return None


def _unique_headers(raw: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for j, cell in enumerate(raw):
        name = cell_text(cell) or f"Column{j + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 1
        headers.append(name)
    return headers


def grid_to_dataset(
    grid: Sequence[Sequence[Any]],
    name: str = "",
    header_row: int | None = None,
    keywords: Iterable[str] = HEADER_KEYWORDS,
) -> TabularDataset:
    """Turn a raw grid into a dataset; rows below the header that are fully blank are dropped."""
    if not grid:
        raise InputFormatError(f"'{name or 'dataset'}' is empty")
    idx = detect_header_row(grid, keywords) if header_row is None else header_row
    if idx is None:
        raise InputFormatError("No valid header row found.")
    headers = _unique_headers(grid[idx])
    rows: list[Row] = []
    for raw in grid[idx + 1:]:
        if all(_clean(v) == "" for v in raw):
            continue
        row: Row = {h: "" for h in headers}
        for h, val in zip(headers, raw, strict=False):
            row[h] = _clean(val)
        rows.append(row)
    return TabularDataset(headers=headers, rows=rows, name=name)


def read_dataset(path: Path, sheet_name: str | None = None) -> TabularDataset:
    """Read one sheet (default: the first) of a workbook as a dataset."""
    workbook = read_workbook(Path(path))
    if not workbook.sheets:
        raise InputFormatError(f"'{workbook.name}' has no sheets")
    if sheet_name is None:
        sheet_name = next(iter(workbook.sheets))
    elif sheet_name not in workbook.sheets:
        raise InputFormatError(f"sheet '{sheet_name}' not found in '{workbook.name}'")
    return grid_to_dataset(workbook.sheets[sheet_name], name=workbook.name)
