from __future__ import annotations

from sheetweaver.models.merge_result import MergeSummary
from sheetweaver.models.results import ImportResult, UpdateResult
from sheetweaver.models.student_record import RecordKind, ScanResult, SheetRejection, StudentRecord
from sheetweaver.services.summary import (
    render_import_summary,
    render_merge_summary,
    render_scan_summary,
    render_update_summary,
)


def test_render_scan_summary():
    rec = StudentRecord(RecordKind.NIS, "1", "A", "a.xlsx", "S", 2)
    result = ScanResult(
        duplicates=[rec, rec],
        empty_id=[rec],
        empty_dob=[],
        scanned_sheet_count=4,
        rejected=[SheetRejection("a.xlsx", "Rekap", ["Nama"])],
    )
    assert render_scan_summary(result) == "SUMMARY sheets=4 duplicates=2 empty_id=1 empty_dob=0 rejected=1"


def test_render_merge_summary():
    s = MergeSummary(total=10, existing=3, matched=5, unmatched=2)
    assert render_merge_summary(s) == "SUMMARY total=10 existing=3 matched=5 unmatched=2"
    assert render_merge_summary(s, 4).endswith(" unmatched_target=4")


def test_render_update_and_import_summary():
    assert render_update_summary(UpdateResult(0, [], None, no_op=True)) == "SUMMARY updated=0 no_op=true"
    assert render_import_summary(ImportResult(3, 1, ["x"], None)) == "SUMMARY imported=3 duplicates=1"
