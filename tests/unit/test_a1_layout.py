from __future__ import annotations

from datetime import date

import pytest

from sheetweaver.errors import InputFormatError
from sheetweaver.sheets.a1 import A1Range, cell, column_index, column_letter, columns, parse_a1
from sheetweaver.sheets.layout import INDEX_OFFSETS, ROW_WIDTH, build_import_row


@pytest.mark.parametrize("letters, index", [("A", 0), ("G", 6), ("T", 19), ("Z", 25), ("AA", 26), ("AB", 27)])
def test_column_round_trip(letters, index):
    assert column_index(letters) == index
    assert column_letter(index) == letters


def test_range_builders_quote_sheet_names():
    assert cell("All Case", "G", 5) == "'All Case'!G5"
    assert columns("All Case", "G", "T") == "'All Case'!G:T"
    assert columns("Bob's", "A") == "'Bob''s'!A:A"


def test_parse_a1():
    assert parse_a1("'All Case'!A5:V9") == A1Range("All Case", 0, 5, 21, 9)
    assert parse_a1("'Bob''s'!G:T") == A1Range("Bob's", 6, None, 19, None)
    assert parse_a1("B2") == A1Range(None, 1, 2, 1, 2)


@pytest.mark.parametrize("ref", ["", "Sheet!", "A1:B2:C3", "1A", "'S'!A-1"])
def test_parse_a1_rejects(ref):
    with pytest.raises(InputFormatError):
        parse_a1(ref)


def test_index_offsets_follow_columns():
    assert INDEX_OFFSETS == {"status": 0, "title": 6, "resolution": 8, "ticket_ref": 13}


def test_build_import_row_layout():
    row = {
        "Client Name": "SMA 1",
        "Customer Name": "Pak Budi",
        "Status": "L2",
        "Ticket Category": "Bug",
        "Module": "Akademik",
        "Detail Module": "Rapor",
        "Created At": "31/7/2024 7:38",
        "Title": "Rapor kosong #9",
        "Resolved At": None,
        "Ticket OP": "OP-9",
    }
    values = build_import_row(row, sequence_no=12, sheet_row=14)
    assert len(values) == ROW_WIDTH
    assert values[:3] == [12, "31/07/2024", "Juli"]
    assert "B14" in values[3]
    assert values[4:15] == [
        "SMA 1", "Pak Budi", "L2", "", "Bug", "Akademik", "Rapor", "31/7/2024 7:38",
        "Rapor kosong #9", "", "",
    ]
    assert values[15:17] == ["", ""]
    assert "G14" in values[17]
    assert values[18] == ""
    assert values[19] == "OP-9"
    assert values[20] == ""
    assert "R14" in values[21]


def test_build_import_row_missing_date_uses_today():
    values = build_import_row({"Title": "X"}, 1, 2, today=date(2025, 1, 9))
    assert values[1:3] == ["9/01/2025", "Januari"]
