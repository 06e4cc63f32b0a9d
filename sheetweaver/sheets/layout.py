from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from ..models.dataset import Row
from ..services.dates import format_sheet_date, indonesian_month, parse_timestamp
from .a1 import column_index

"""Column layout of the "All Case" sheet.

    A  No                 L  Created At
    B  Date (D/MM/YYYY)   M  Title
    C  Month (Indonesian) N  Kolom kosong2
    D  ticket-number fx   O  Resolved At
    E  Client Name        P, Q  blank
    F  Customer Name      R  status-case fx
    G  Status             S  blank
    H  Kolom kosong1      T  Ticket OP
    I  Ticket Category    U  blank
    J  Module             V  case-age fx
    K  Detail Module
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MAIN_DATA_HEADERS",
    "NUMBER_COLUMN",
    "STATUS_COLUMN",
    "TITLE_COLUMN",
    "RESOLUTION_COLUMN",
    "TICKET_REF_COLUMN",
    "INDEX_FIRST_COLUMN",
    "INDEX_LAST_COLUMN",
    "INDEX_OFFSETS",
    "ROW_WIDTH",
    "build_import_row",
]

MAIN_DATA_HEADERS = (
    "Client Name", "Customer Name", "Status", "Kolom kosong1",
    "Ticket Category", "Module", "Detail Module", "Created At",
    "Title", "Kolom kosong2", "Resolved At",
)

NUMBER_COLUMN = "A"
STATUS_COLUMN = "G"
TITLE_COLUMN = "M"
RESOLUTION_COLUMN = "O"
TICKET_REF_COLUMN = "T"

# range read to build the row index
INDEX_FIRST_COLUMN = STATUS_COLUMN
INDEX_LAST_COLUMN = TICKET_REF_COLUMN
INDEX_OFFSETS = {
    "status": column_index(STATUS_COLUMN) - column_index(INDEX_FIRST_COLUMN),  # 0
    "title": column_index(TITLE_COLUMN) - column_index(INDEX_FIRST_COLUMN),  # 6
    "resolution": column_index(RESOLUTION_COLUMN) - column_index(INDEX_FIRST_COLUMN),  # 8
    "ticket_ref": column_index(TICKET_REF_COLUMN) - column_index(INDEX_FIRST_COLUMN),  # 13
}

ROW_WIDTH = 22  # A..V


def _ticket_formula(n: int) -> str:
    return f'=CONCATENATE("TKT-", TEXT(B{n}, "YYMMDD"), "-", TEXT(ROW()-2, "00000"))'


def _status_case_formula(n: int) -> str:
    return (
        f'=IF(G{n}="solved","SOLVED",IF(OR(G{n}="L1",G{n}="L2",G{n}="L3",G{n}="PM"),'
        f'"UNSOLVED",""))'
    )


def _age_formula(n: int) -> str:
    return f'=IF(R{n}="UNSOLVED", TODAY() - B{n}, "")'


def _text(value: Any) -> Any:
    if value is None:
        return ""
    return value


def build_import_row(row: Row, sequence_no: int, sheet_row: int, today: date | None = None) -> list[Any]:
    """Values for one appended sheet row.

    ``sheet_row`` is the 1-based row the values land on; formulas refer to
    it. An unparseable ``Created At`` falls back to ``today``.
    """
    created = parse_timestamp(row.get("Created At"))
    if created is None:
        if row.get("Created At"):
            logger.warning("invalid 'Created At' %r, using current date", row.get("Created At"))
        day: date = today or datetime.now().date()
    else:
        day = created.date()

    main = [_text(row.get(h)) for h in MAIN_DATA_HEADERS]
    values = [
        sequence_no,  # A
        format_sheet_date(day),  # B
        indonesian_month(day),  # C
        _ticket_formula(sheet_row),  # D
        *main,  # E..O
        "", "",  # P, Q
        _status_case_formula(sheet_row),  # R
        "",  # S
        _text(row.get("Ticket OP")),  # T
        "",  # U
        _age_formula(sheet_row),  # V
    ]
    return values
