from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from ..errors import SchemaMismatchError
from ..models.dataset import TabularDataset
from .normalize import find_header

"""Date helpers.

- ``normalize_timestamp``: canonical "YYYY-MM-DD HH:mm" for comparing the
  resolution time the ticket export gives (ISO) against what the sheet shows
  (locale format "D/M/YYYY H:mm"). Wall-clock values, no timezone shifting.
- ``parse_birth_date``: free-form birth dates to DD/MM/YYYY.
- ``format_birth_dates``: rewrites the birth-date column of a roster.
- ``format_sheet_date`` / ``indonesian_month``: values written into the
  main sheet's date columns.
"""

__all__ = [
    "INDONESIAN_MONTHS",
    "parse_timestamp",
    "normalize_timestamp",
    "parse_birth_date",
    "BIRTH_DATE_ALIASES",
    "format_birth_dates",
    "format_sheet_date",
    "indonesian_month",
]

INDONESIAN_MONTHS = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

# checked in order with startswith, so "sept" still resolves through "sep"
_MONTH_PREFIXES = (
    # Indonesian
    ("januari", 1), ("janu", 1), ("jan", 1),
    ("februari", 2), ("feb", 2), ("febr", 2),
    ("maret", 3), ("mar", 3),
    ("april", 4), ("apr", 4),
    ("mei", 5),
    ("juni", 6), ("jun", 6),
    ("juli", 7), ("jul", 7),
    ("agustus", 8), ("agu", 8), ("ags", 8),
    ("september", 9), ("sep", 9), ("sept", 9),
    ("oktober", 10), ("okt", 10),
    ("november", 11), ("nov", 11),
    ("desember", 12), ("des", 12),
    # English
    ("january", 1), ("february", 2), ("march", 3), ("may", 5), ("june", 6),
    ("july", 7), ("august", 8), ("aug", 8), ("october", 10), ("oct", 10),
    ("december", 12), ("dec", 12),
)

# D/M/YYYY H:mm[:ss], as rendered by a Sheets locale like id_ID
_LOCALE_TS = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T]+(\d{1,2})[:.](\d{2})(?:[:.](\d{2}))?)?$"
)
_DMY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[-.\s]+([a-z]+)\.?[-.\s]+(\d{4})$")
_MONTH_DAY_YEAR = re.compile(r"^([a-z]+)\.?\s+(\d{1,2})\s+(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 or D/M/YYYY H:mm value; None when unparseable.

    Offsets in ISO input are dropped, keeping the written wall-clock time.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    m = _LOCALE_TS.match(text)
    if m:
        d, mo, y, hh, mm, ss = m.groups()
        try:
            return datetime(int(y), int(mo), int(d), int(hh or 0), int(mm or 0), int(ss or 0))
        except ValueError:
            return None
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def normalize_timestamp(value: Any) -> str | None:
    """Canonical "YYYY-MM-DD HH:mm" form, or None for blank/unparseable input."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y-%m-%d %H:%M")


def _month_from_name(name: str) -> int | None:
    for prefix, month in _MONTH_PREFIXES:
        if name.startswith(prefix):
            return month
    return None


def _format_dmy(day: int, month: int, year: int) -> str | None:
    try:
        d = date(year, month, day)
    except ValueError:
        return None
    return d.strftime("%d/%m/%Y")


def parse_birth_date(value: Any) -> str | None:
    """Best-effort parse of a birth date cell into DD/MM/YYYY.

    Accepted shapes (case-insensitive, commas read as slashes):
    ``D/M/YYYY`` (fields swapped when the month field exceeds 12),
    ``D <month> YYYY``, ``D-<month>-YYYY``, ``<month> D YYYY`` and
    ``YYYY-MM-DD``. Month names may be Indonesian or English, full or
    abbreviated. Returns None for anything else.
    """
    if isinstance(value, datetime | date):
        return value.strftime("%d/%m/%Y")
    if not isinstance(value, str):
        return None
    text = value.strip().lower().replace(",", "/")
    if not text:
        return None

    m = _DMY.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        if month > 12:
            day, month = month, day
        return _format_dmy(day, month, year)

    m = _DAY_MONTH_YEAR.match(text)
    if m:
        month = _month_from_name(m.group(2))
        if month is None:
            return None
        return _format_dmy(int(m.group(1)), month, int(m.group(3)))

    m = _MONTH_DAY_YEAR.match(text)
    if m:
        month = _month_from_name(m.group(1))
        if month is None:
            return None
        return _format_dmy(int(m.group(2)), month, int(m.group(3)))

    m = _ISO_DATE.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _format_dmy(day, month, year)
    return None


def format_sheet_date(value: date) -> str:
    """D/MM/YYYY, the format the main sheet's date column uses."""
    return f"{value.day}/{value.month:02d}/{value.year}"


def indonesian_month(value: date) -> str:
    return INDONESIAN_MONTHS[value.month - 1]


BIRTH_DATE_ALIASES = ("tanggal lahir", "tgl lahir", "tgl. lahir")


def format_birth_dates(
    dataset: TabularDataset,
    aliases: Sequence[str] = BIRTH_DATE_ALIASES,
) -> tuple[TabularDataset, int]:
    """Copy of ``dataset`` with its birth-date column in DD/MM/YYYY.

    Cells that do not parse are kept as they are. Returns the new dataset and
    the number of cells that changed.
    """
    header = find_header(dataset.headers, aliases)
    if header is None:
        raise SchemaMismatchError(
            f"no birth date column (accepted: {', '.join(aliases)})",
            missing=["tanggal lahir"],
        )
    rows = []
    changed = 0
    for row in dataset.rows:
        original = row.get(header)
        formatted = parse_birth_date(original)
        if formatted is not None and formatted != original:
            row = {**row, header: formatted}
            changed += 1
        rows.append(row)
    return TabularDataset(headers=list(dataset.headers), rows=rows, name=dataset.name), changed
