from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.sheet_change import ChangeRecord, SheetRowInfo
from ..sheets.layout import INDEX_OFFSETS
from .dates import normalize_timestamp

"""Sheet row index and diff engine.

The index maps a trimmed case title to the row holding it, with a secondary
``#<digits>`` key taken from the ticket number inside the title. Secondary
keys never overwrite an entry that is already present.

The diff of an incoming row against its indexed row only flags fields that
really differ, so running it again after the update was applied yields no
changes.
"""

__all__ = [
    "SOLVED",
    "ticket_key",
    "build_row_index",
    "lookup_row",
    "diff_row",
    "compute_changes",
]

SOLVED = "Solved"
_TICKET_NUMBER = re.compile(r"#(\d+)")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def ticket_key(title: str) -> str | None:
    m = _TICKET_NUMBER.search(title)
    return f"#{m.group(1)}" if m else None


def build_row_index(values: Sequence[Sequence[Any]], start_row: int = 1) -> dict[str, SheetRowInfo]:
    """Index rows of the status..ticket-ref range.

    ``start_row`` is the sheet row of ``values[0]``.
    """
    index: dict[str, SheetRowInfo] = {}
    by_number: set[str] = set()

    def at(row: Sequence[Any], key: str) -> str:
        i = INDEX_OFFSETS[key]
        return _text(row[i]) if i < len(row) else ""

    for i, row in enumerate(values):
        title = at(row, "title").strip()
        if not title:
            continue
        info = SheetRowInfo(
            row_index=i + start_row,
            status=at(row, "status"),
            ticket_ref=at(row, "ticket_ref"),
            resolution=at(row, "resolution"),
            title=title,
        )
        # first row wins for both keys; a title only displaces a ticket-number entry
        if title not in index or title in by_number:
            index[title] = info
            by_number.discard(title)
        key = ticket_key(title)
        if key is not None and key not in index:
            index[key] = info
            by_number.add(key)
    return index


def lookup_row(index: Mapping[str, SheetRowInfo], title: Any) -> SheetRowInfo | None:
    text = _text(title).strip()
    if not text:
        return None
    hit = index.get(text)
    if hit is not None:
        return hit
    key = ticket_key(text)
    return index.get(key) if key is not None else None


def _canonical_resolution(value: str) -> str:
    # unparseable values still compare by their raw text
    return normalize_timestamp(value) or value.strip()


def diff_row(info: SheetRowInfo, status: Any, ticket_ref: Any, resolution: Any) -> ChangeRecord | None:
    new_status = _text(status)
    new_ticket = _text(ticket_ref).strip()
    new_resolution = _text(resolution)

    status_changed = info.status != new_status
    ticket_changed = bool(new_ticket) and info.ticket_ref != new_ticket
    resolution_changed = new_status == SOLVED and (
        _canonical_resolution(info.resolution) != _canonical_resolution(new_resolution)
    )
    if not (status_changed or ticket_changed or resolution_changed):
        return None
    return ChangeRecord(
        title=info.title,
        row_index=info.row_index,
        old_status=info.status,
        old_ticket_ref=info.ticket_ref,
        old_resolution=info.resolution,
        status_changed=status_changed,
        ticket_changed=ticket_changed,
        resolution_changed=resolution_changed,
        new_status=new_status if status_changed else None,
        new_ticket_ref=new_ticket if ticket_changed else None,
        new_resolution=new_resolution if resolution_changed else None,
    )


def compute_changes(
    index: Mapping[str, SheetRowInfo],
    rows: Iterable[Mapping[str, Any]],
) -> tuple[list[ChangeRecord], list[str]]:
    """Diff candidate rows (Title, Status, Ticket OP, Resolved At) against the index.

    Returns the change-set and the titles that matched no sheet row. When
    two candidates hit the same sheet row the first one wins.
    """
    changes: list[ChangeRecord] = []
    unmatched: list[str] = []
    seen_rows: set[int] = set()
    for row in rows:
        title = _text(row.get("Title")).strip()
        if not title:
            continue
        info = lookup_row(index, title)
        if info is None:
            unmatched.append(title)
            continue
        if info.row_index in seen_rows:
            continue
        seen_rows.add(info.row_index)
        change = diff_row(info, row.get("Status"), row.get("Ticket OP"), row.get("Resolved At"))
        if change is not None:
            changes.append(change)
    return changes, unmatched
