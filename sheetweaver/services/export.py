from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import pandas as pd

from ..errors import InputFormatError
from ..models.config_models import MergeConfig
from ..models.dataset import Row
from ..models.merge_result import MergeResult
from .normalize import find_header

"""Final merge output.

The platform's bulk-edit template has two header rows (machine keys, then
labels) followed by ``No | Id | Name | <field>``.
"""

__all__ = [
    "MODE_COLUMNS",
    "final_rows",
    "project_result_rows",
    "write_rows_xlsx",
]

# mode -> (machine key, label, extra source alias)
MODE_COLUMNS = {
    "nisn": ("nisn", "NISN", "nisn"),
    "nis": ("nis", "NIS", "nis"),
    "year": ("year", "Year", "tahun ajaran"),
}


def final_rows(result: MergeResult, manual_matches: Iterable[Row] = ()) -> list[Row]:
    """Automatic matches followed by the caller's manual matches."""
    return [*result.merged_rows, *manual_matches]


def _mode_column(mode: str, config: MergeConfig | None = None) -> tuple[str, str, tuple[str, ...]]:
    """(machine key, label, source aliases) for a built-in or configured mode."""
    key = mode.strip().lower()
    aliases = (config or MergeConfig()).mode_aliases.get(key, ())
    if key in MODE_COLUMNS:
        machine, label, alias = MODE_COLUMNS[key]
        return machine, label, (alias, *aliases)
    if not aliases:
        raise InputFormatError(f"unknown merge mode '{mode}'")
    return key, key.title(), tuple(aliases)


def project_result_rows(
    rows: Sequence[Row],
    mode: str,
    target_headers: Sequence[str],
    source_headers: Sequence[str] = (),
    config: MergeConfig | None = None,
) -> list[Row]:
    """Project merged rows onto ``No, Id, Name, <NISN|NIS|Year>``.

    Id and Name come from the target's columns; the mode value from the
    source column (``tahun ajaran`` counts as Year).
    """
    config = config or MergeConfig()
    key, label, aliases = _mode_column(mode, config)
    id_header = find_header(target_headers, ["id"]) or "Id"
    name_header = find_header(target_headers, config.name_aliases) or "Name"
    value_header = find_header(source_headers or [h for r in rows[:1] for h in r], [key, *aliases]) or label

    out: list[Row] = []
    for i, row in enumerate(rows, 1):
        out.append({
            "No": i,
            "Id": row.get(id_header) or "",
            "Name": row.get(name_header) or "",
            label: row.get(value_header) or "",
        })
    return out


def write_rows_xlsx(rows: Sequence[Row], mode: str, path: Path, config: MergeConfig | None = None) -> Path:
    """Write projected rows with the two-line template header."""
    if not rows:
        raise InputFormatError("No Data to Download")
    key, label, _ = _mode_column(mode, config)
    grid = [["No", "id", "name", key], ["", "Id", "Name", label]]
    grid += [[r["No"], r["Id"], r["Name"], r[label]] for r in rows]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(grid).to_excel(path, sheet_name="Merged Data", header=False, index=False, engine="openpyxl")
    return path
