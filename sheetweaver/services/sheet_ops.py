from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from ..errors import InputFormatError, UndoStateError
from ..models.dataset import Row
from ..models.results import ImportResult, UndoResult, UpdatePreview, UpdateResult
from ..models.sheet_change import ChangeRecord, ImportUndo, SheetRowInfo, UndoPayload, UpdateUndo
from ..sheets import a1
from ..sheets.backend import SheetBackend, SheetProperties, SheetRef
from ..sheets.layout import (
    INDEX_FIRST_COLUMN,
    INDEX_LAST_COLUMN,
    NUMBER_COLUMN,
    RESOLUTION_COLUMN,
    STATUS_COLUMN,
    TICKET_REF_COLUMN,
    TITLE_COLUMN,
    build_import_row,
)
from .sheet_index import build_row_index, compute_changes

"""Import / update / undo against the "All Case" sheet.

Each call re-reads the sheet; nothing is cached between calls. Mutating calls
return an undo payload describing exactly what they wrote, and ``undo``
replays its inverse. Holding the payload (and dropping it after one undo)
is up to the caller.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "load_row_index",
    "preview_update",
    "apply_update",
    "import_rows",
    "undo",
]


def load_row_index(backend: SheetBackend, ref: SheetRef) -> dict[str, SheetRowInfo]:
    values = backend.read_range(a1.columns(ref.sheet_name, INDEX_FIRST_COLUMN, INDEX_LAST_COLUMN))
    return build_row_index(values, start_row=1)


def _require_rows(rows: Sequence[Mapping[str, Any]], what: str) -> None:
    if not rows:
        raise InputFormatError(f"No data provided to {what}.")


def preview_update(backend: SheetBackend, ref: SheetRef, rows: Sequence[Mapping[str, Any]]) -> UpdatePreview:
    _require_rows(rows, "preview")
    changes, unmatched = compute_changes(load_row_index(backend, ref), rows)
    logger.debug("preview: %d change(s), %d unmatched title(s)", len(changes), len(unmatched))
    return UpdatePreview(changes=changes, unmatched_titles=unmatched)


def _forward_cells(sheet: str, change: ChangeRecord) -> list[tuple[str, list[list[Any]]]]:
    out: list[tuple[str, list[list[Any]]]] = []
    if change.status_changed:
        out.append((a1.cell(sheet, STATUS_COLUMN, change.row_index), [[change.new_status]]))
    if change.ticket_changed:
        out.append((a1.cell(sheet, TICKET_REF_COLUMN, change.row_index), [[change.new_ticket_ref]]))
    if change.resolution_changed:
        out.append((a1.cell(sheet, RESOLUTION_COLUMN, change.row_index), [[change.new_resolution]]))
    return out


def _inverse_cells(sheet: str, change: ChangeRecord) -> list[tuple[str, list[list[Any]]]]:
    out: list[tuple[str, list[list[Any]]]] = []
    if change.status_changed:
        out.append((a1.cell(sheet, STATUS_COLUMN, change.row_index), [[change.old_status]]))
    if change.ticket_changed:
        out.append((a1.cell(sheet, TICKET_REF_COLUMN, change.row_index), [[change.old_ticket_ref]]))
    if change.resolution_changed:
        out.append((a1.cell(sheet, RESOLUTION_COLUMN, change.row_index), [[change.old_resolution]]))
    return out


def apply_update(backend: SheetBackend, ref: SheetRef, rows: Sequence[Mapping[str, Any]]) -> UpdateResult:
    """Write the changed status / ticket / resolution cells in one batch."""
    _require_rows(rows, "update")
    changes, _ = compute_changes(load_row_index(backend, ref), rows)
    if not changes:
        return UpdateResult(
            updated_count=0,
            changes=[],
            undo=None,
            no_op=True,
            message="No changes detected. Everything is up-to-date.",
        )
    updates = [u for c in changes for u in _forward_cells(ref.sheet_name, c)]
    backend.batch_update(updates)
    logger.info("updated %d row(s) (%d cell(s))", len(changes), len(updates))
    return UpdateResult(
        updated_count=len(changes),
        changes=changes,
        undo=UpdateUndo(target_id=ref.collection_id, changes=tuple(changes)),
        message=f"Successfully updated {len(changes)} rows.",
    )


def _as_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _last_numbered_row(column_a: Sequence[Sequence[Any]]) -> tuple[int, int]:
    """(1-based index of the last row with a number in A, that number).

    Without any numbered row, appending starts after the used range.
    """
    for i in range(len(column_a) - 1, -1, -1):
        cells = column_a[i]
        n = _as_number(cells[0]) if cells else None
        if n is not None:
            return i + 1, n
    return len(column_a), 0


def _sheet_properties(backend: SheetBackend, ref: SheetRef) -> SheetProperties:
    props = backend.get_properties(ref.sheet_name)
    if props is None or isinstance(props.sheet_id, bool) or not isinstance(props.sheet_id, int):
        raise InputFormatError(
            f'The target sheet named "{ref.sheet_name}" was not found in the spreadsheet.'
        )
    return props


def import_rows(
    backend: SheetBackend,
    ref: SheetRef,
    rows: Iterable[Row],
    today: date | None = None,
) -> ImportResult:
    """Append rows whose Title is not in the sheet yet.

    Rows land right below the last numbered row of column A and continue its
    numbering. The sheet grows first when the batch would not fit.
    """
    rows = list(rows)
    _require_rows(rows, "import")
    props = _sheet_properties(backend, ref)

    # both ranges in one batched read; results come back in request order
    column_a, column_title = backend.read_ranges(
        [a1.columns(ref.sheet_name, NUMBER_COLUMN), a1.columns(ref.sheet_name, TITLE_COLUMN)]
    )
    last_row, last_no = _last_numbered_row(column_a)
    existing = {str(c).strip() for cells in column_title for c in cells if str(c).strip()}

    new_rows: list[Row] = []
    duplicates: list[str] = []
    for row in rows:
        title = str(row.get("Title") or "").strip()
        if not title:
            continue
        if title in existing:
            duplicates.append(title)
            continue
        existing.add(title)
        new_rows.append(row)

    if not new_rows:
        return ImportResult(
            imported_count=0,
            duplicate_count=len(duplicates),
            duplicates=duplicates,
            undo=None,
            no_op=True,
            message="No new data to import.",
        )

    required = last_row + len(new_rows)
    if required > props.row_count:
        backend.append_rows(props.sheet_id, required - props.row_count)
        logger.debug("grew sheet by %d row(s)", required - props.row_count)

    values = [
        build_import_row(row, last_no + i + 1, last_row + i + 1, today)
        for i, row in enumerate(new_rows)
    ]
    written = backend.write_range(a1.cell(ref.sheet_name, NUMBER_COLUMN, last_row + 1), values)

    start_row = last_row + 1
    if written:
        parsed = a1.parse_a1(written)
        if parsed.start_row is not None:
            start_row = parsed.start_row
    logger.info("imported %d row(s) at row %d, %d duplicate(s)", len(new_rows), start_row, len(duplicates))
    return ImportResult(
        imported_count=len(new_rows),
        duplicate_count=len(duplicates),
        duplicates=duplicates,
        undo=ImportUndo(
            target_id=ref.collection_id,
            range_id=props.sheet_id,
            start_index=start_row - 1,
            count=len(new_rows),
        ),
        message="Import complete.",
    )


def undo(backend: SheetBackend, ref: SheetRef, payload: UndoPayload | None) -> UndoResult:
    """Reverse one import or update.

    Raises UndoStateError for a missing payload, one that belongs to another
    spreadsheet, or an import payload without a numeric sheet id.
    """
    if payload is None:
        raise UndoStateError("No undo data available.")
    if payload.target_id != ref.collection_id:
        raise UndoStateError("Undo data belongs to a different spreadsheet.")

    if isinstance(payload, ImportUndo):
        if isinstance(payload.range_id, bool) or not isinstance(payload.range_id, int):
            raise UndoStateError("Invalid sheet ID for undo operation.")
        if payload.start_index < 0 or payload.count < 0:
            raise UndoStateError("Invalid row range for undo operation.")
        if payload.count:
            backend.delete_rows(payload.range_id, payload.start_index, payload.start_index + payload.count)
        return UndoResult(
            kind=payload.kind,
            affected=payload.count,
            message=f"Successfully undone import of {payload.count} rows.",
        )

    if isinstance(payload, UpdateUndo):
        requests = [u for c in payload.changes for u in _inverse_cells(ref.sheet_name, c)]
        if requests:
            backend.batch_update(requests)
        return UndoResult(
            kind=payload.kind,
            affected=len(payload.changes),
            message=f"Successfully undone update of {len(payload.changes)} rows.",
        )

    raise UndoStateError("Unknown operation type for undo.")
