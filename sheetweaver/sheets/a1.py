from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import InputFormatError

"""A1 notation helpers.

Only the subset used by the sheet operations: whole columns (``G:T``),
single cells (``G5``) and rectangles (``A5:V9``), optionally prefixed by a
quoted or bare sheet name.
"""

__all__ = [
    "A1Range",
    "column_index",
    "column_letter",
    "quote_sheet",
    "cell",
    "columns",
    "parse_a1",
]

_CELL = re.compile(r"^([A-Za-z]+)(\d+)?$")


@dataclass(frozen=True)
class A1Range:
    sheet: str | None
    start_col: int  # 0-based
    start_row: int | None  # 1-based, None for whole-column ranges
    end_col: int
    end_row: int | None


def column_index(letters: str) -> int:
    """'A' -> 0, 'Z' -> 25, 'AA' -> 26."""
    n = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise InputFormatError(f"invalid column letters: {letters!r}")
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def column_letter(index: int) -> str:
    if index < 0:
        raise InputFormatError(f"invalid column index: {index}")
    out = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        out = chr(ord("A") + rem) + out
    return out


def quote_sheet(name: str) -> str:
    return "'" + name.replace("'", "''") + "'"


def cell(sheet: str, col: str, row: int) -> str:
    return f"{quote_sheet(sheet)}!{col}{row}"


def columns(sheet: str, first: str, last: str | None = None) -> str:
    return f"{quote_sheet(sheet)}!{first}:{last or first}"


def _split_sheet(ref: str) -> tuple[str | None, str]:
    if "!" not in ref:
        return None, ref
    sheet, _, rest = ref.rpartition("!")
    if len(sheet) >= 2 and sheet[0] == sheet[-1] == "'":
        sheet = sheet[1:-1].replace("''", "'")
    return sheet, rest


def parse_a1(ref: str) -> A1Range:
    sheet, rest = _split_sheet(ref.strip())
    parts = rest.split(":")
    if len(parts) > 2 or not parts[0]:
        raise InputFormatError(f"invalid A1 range: {ref!r}")
    start = _CELL.match(parts[0])
    end = _CELL.match(parts[-1])
    if start is None or end is None:
        raise InputFormatError(f"invalid A1 range: {ref!r}")
    return A1Range(
        sheet=sheet,
        start_col=column_index(start.group(1)),
        start_row=int(start.group(2)) if start.group(2) else None,
        end_col=column_index(end.group(1)),
        end_row=int(end.group(2)) if end.group(2) else None,
    )
