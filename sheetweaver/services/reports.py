from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from ..errors import InputFormatError
from ..models.dataset import Row, TabularDataset
from ..sheets import a1
from ..sheets.backend import SheetBackend, SheetRef
from .dates import parse_timestamp

"""Text reports for the support chat.

``daily_report`` summarises a converted ticket batch; ``l3_report`` lists
the cases of the "All Case" sheet still parked at L3, grouped by category.
Both return plain text with ``*bold*`` markers.
"""

__all__ = [
    "daily_report",
    "l3_report",
    "fetch_l3_report",
    "l3_category",
]

UNRESOLVED = ("l1", "l2", "l3", "pending", "on hold")

# column offsets inside the B:T range
L3_DATE = 0
L3_STATUS = 5
L3_MODULE = 8
L3_TITLE = 11
L3_TICKET_REF = 18


def _status(row: Row) -> str:
    return str(row.get("Status") or "").strip().lower()


def _most_frequent(rows: Sequence[Row], field: str) -> str:
    """Most frequent non-blank value; ties go to the lexically greatest."""
    counts = Counter(str(r[field]) for r in rows if r.get(field))
    if not counts:
        return "N/A"
    return max(counts.items(), key=lambda kv: (kv[1], kv[0]))[0]


def _dmy(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def daily_report(dataset: TabularDataset, today: date | None = None) -> str:
    rows = dataset.rows
    if not rows:
        raise InputFormatError("no rows to report on")
    today = today or date.today()
    statuses = [_status(r) for r in rows]

    trending_client = _most_frequent(rows, "Client Name")
    client_rows = [r for r in rows if str(r.get("Client Name") or "") == trending_client]
    trending_case = _most_frequent(client_rows, "Detail Module")

    created = [d for d in (parse_timestamp(r.get("Created At")) for r in rows) if d is not None]
    latest = max(created).strftime("%d/%m/%Y %H:%M") if created else "N/A"

    unresolved = []
    solved = []
    for r in rows:
        client = str(r.get("Client Name") or "").strip()
        title = str(r.get("Title") or "").strip()
        if not client or not title:
            continue
        if _status(r) in UNRESOLVED:
            unresolved.append(f"{client} {title} {str(r.get('Status') or '').strip()}".strip())
        elif _status(r) == "solved":
            solved.append(f"{client} {title}")

    lines = [
        f"*Case report {_dmy(today)} (update last entry time {latest})*",
        "",
        f"Total cases: {len(rows)}",
        f"Escalated L1: {statuses.count('l1')}",
        f"Escalated L2: {statuses.count('l2')}",
        f"Escalated L3: {statuses.count('l3')}",
        f"Pending: {sum(s in ('pending', 'on hold') for s in statuses)}",
        f"Solved: {statuses.count('solved')}",
        f"Client Trend: {trending_client}",
        f"Case Trend: {trending_case}",
        "",
        "*Summary of unresolved case details:*",
    ]
    lines += [f"{i}. {text}" for i, text in enumerate(unresolved, 1)] or ["No unresolved cases."]
    lines += ["", "*Solved cases:*"]
    lines += [f"{i}. {text}" for i, text in enumerate(solved, 1)] or ["No solved cases yet."]
    return "\n".join(lines).strip()


def l3_category(module: str) -> str:
    if module in ("Payment", "Pintro Pay"):
        return "Payment"
    if module in ("Aplikasi/Mobile", "Akses Portal"):
        return module
    return "Akademik"


def _sheet_date(value: Any) -> date | None:
    parts = str(value or "").strip().split("/")
    if len(parts) != 3:
        return None
    try:
        return date(int(parts[2]), int(parts[1]), int(parts[0]))
    except ValueError:
        return None


def _cell(row: Sequence[Any], idx: int) -> str:
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def l3_report(grid: Sequence[Sequence[Any]], today: date | None = None) -> str:
    """Report of the L3 cases in a B:T grid (first row is the header)."""
    if len(grid) < 2:
        raise InputFormatError("No data found in the sheet.")
    today = today or datetime.now().date()
    cases = [row for row in grid[1:] if _cell(row, L3_STATUS) == "L3"]

    grouped: dict[str, list[str]] = {}
    dates: list[date] = []
    for row in cases:
        opened = _sheet_date(_cell(row, L3_DATE))
        if opened is not None:
            dates.append(opened)
        age = f"{abs((today - opened).days)} hari" if opened is not None else "N/A"
        title = " ".join(t for t in (_cell(row, L3_TITLE), _cell(row, L3_TICKET_REF)) if t)
        grouped.setdefault(l3_category(_cell(row, L3_MODULE)), []).append(f"{title} ({age})")

    first = _dmy(min(dates)) if dates else ""
    last = _dmy(max(dates)) if dates else ""
    lines = [
        f"Update cases yang belum solved L3 on hold ({first} - {last})",
        "",
        f"Total : {len(cases)}",
    ]
    lines += [f"{category} > L3 : {len(items)}" for category, items in grouped.items()]
    lines.append("")
    for category, items in grouped.items():
        lines.append(f"{category.upper()} > L3")
        lines += [f"{i}. {text}" for i, text in enumerate(items, 1)]
        lines.append("")
    return "\n".join(lines).strip()


def fetch_l3_report(backend: SheetBackend, ref: SheetRef, today: date | None = None) -> str:
    grid = backend.read_range(a1.columns(ref.sheet_name, "B", "T"))
    return l3_report(grid, today)
