from __future__ import annotations

from sheetweaver import api
from sheetweaver.logging.init import reset_logging, setup_logging
from sheetweaver.models.dataset import TabularDataset, WorkbookGrid
from sheetweaver.models.merge_result import MergeResult
from sheetweaver.models.results import ErrorResult, SheetInfo, UndoResult


def test_merge_success_and_schema_error():
    source = TabularDataset(["Name"], [{"Name": "Jane Doe"}])
    target = TabularDataset(["Name", "NISN"], [{"Name": "jane doe", "NISN": ""}])
    assert isinstance(api.merge(source, target, "nisn"), MergeResult)

    err = api.merge(source, TabularDataset(["Name"], [{"Name": "x"}]), "nisn")
    assert isinstance(err, ErrorResult)
    assert err.error_type == "SchemaMismatchError"
    assert err.details == {"missing": ["nisn"]}


def test_errors_are_logged_not_raised(capsys):
    reset_logging()
    setup_logging()
    err = api.merge(TabularDataset(["Name"], []), TabularDataset(["Name"], []), "nisn")
    assert err.error_type == "InputFormatError"
    assert "ERROR merge: source dataset has no rows" in capsys.readouterr().out


def test_scan_for_duplicates():
    wb = WorkbookGrid("a.xlsx", {"S": [["Nama", "NIS"], ["A", "1"], ["B", "1"]]})
    assert len(api.scan_for_duplicates([wb]).duplicates) == 2


def test_recommend_matches():
    recs = api.recommend_matches([{"Name": "Ana"}], [{"Name": "Ani"}])
    assert recs[0].distance == 1


def test_sheet_flow_through_api(fake_backend, sheet_ref):
    rows = [{"Title": "Issue #42 nilai rapor", "Status": "L3", "Ticket OP": "", "Resolved At": ""}]
    preview = api.preview_sheet_update(rows, sheet_ref, fake_backend)
    assert len(preview.changes) == 1

    result = api.apply_sheet_update(rows, sheet_ref, fake_backend)
    undone = api.undo(result.undo, sheet_ref, fake_backend)
    assert isinstance(undone, UndoResult)
    assert fake_backend.cell("G", 3) == "L2"

    imported = api.import_rows(TabularDataset(["Title"], [{"Title": "Baru #60"}]), sheet_ref, fake_backend)
    assert imported.imported_count == 1


def test_undo_without_payload(fake_backend, sheet_ref):
    err = api.undo(None, sheet_ref, fake_backend)
    assert err == ErrorResult("No undo data available.", "UndoStateError", {})


def test_verify_sheet(fake_backend, sheet_ref):
    assert api.verify_sheet(sheet_ref, fake_backend) == SheetInfo("Helpdesk 2025", "1AbC-dEf_123")
    fake_backend.fail_with = "Requested entity was not found."
    err = api.verify_sheet(sheet_ref, fake_backend)
    assert err.error_type == "ExternalCollaboratorError"
    assert err.error == "Requested entity was not found."
    fake_backend.fail_with = None
    fake_backend.title = ""
    assert api.verify_sheet(sheet_ref, fake_backend).error == "Could not retrieve the spreadsheet title."
