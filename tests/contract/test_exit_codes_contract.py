from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from sheetweaver.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main
from sheetweaver.errors import ExternalCollaboratorError

"""Exit code contract: 0 success, 1 fatal, 2 partial (scan skipped sheets or files)."""

HEADER = ["Nama", "NIS", "NISN", "Tanggal Lahir"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("GCP_CREDENTIALS", raising=False)
    monkeypatch.delenv("SHEETWEAVER_SHEET_URL", raising=False)


def test_exit_codes_are_distinct():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)


def test_scan_success(make_workbook, capsys):
    make_workbook("a.xlsx", {"X-1": [HEADER, ["Budi", 1, "", "1/1/2010"]]})
    assert main(["scan", "data"]) == EXIT_SUCCESS_ALL
    assert "SUMMARY sheets=1 duplicates=0 empty_id=0 empty_dob=0 rejected=0" in capsys.readouterr().out


def test_scan_with_rejected_sheet_is_partial(make_workbook):
    make_workbook("a.xlsx", {"X-1": [HEADER, ["Budi", 1, "", "1/1/2010"]], "Rekap": [["Kelas"], ["X"]]})
    assert main(["scan", "data"]) == EXIT_PARTIAL_FAILURE


def test_scan_with_unreadable_file_is_partial(make_workbook, temp_workdir: Path):
    make_workbook("a.xlsx", {"X-1": [HEADER, ["Budi", 1, "", "1/1/2010"]]})
    (temp_workdir / "data" / "broken.xlsx").write_bytes(b"garbage")
    assert main(["scan", "data"]) == EXIT_PARTIAL_FAILURE


def test_scan_missing_path_is_fatal(temp_workdir: Path, capsys):
    assert main(["scan", "nowhere"]) == EXIT_FATAL
    assert "ERROR scan: path not found: nowhere" in capsys.readouterr().out


def test_invalid_config_is_fatal(temp_workdir: Path, capsys):
    bad = temp_workdir / "config" / "bad.yml"
    bad.write_text("unknown_section: 1\n", encoding="utf-8")
    assert main(["--config", str(bad), "scan", "data"]) == EXIT_FATAL
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_missing_explicit_config_is_fatal(temp_workdir: Path):
    assert main(["--config", "config/absent.yml", "scan", "data"]) == EXIT_FATAL


def test_backend_failure_is_fatal(write_config: Path, capsys):
    with patch(
        "sheetweaver.cli.__main__.open_backend",
        side_effect=ExternalCollaboratorError("The caller does not have permission"),
    ):
        assert main(["verify"]) == EXIT_FATAL
    assert "ERROR verify: The caller does not have permission" in capsys.readouterr().out


def test_merge_schema_mismatch_is_fatal(make_workbook, capsys):
    make_workbook("s.xlsx", {"S": [["Nama", "nisn"], ["Budi", "1"]]})
    make_workbook("t.xlsx", {"T": [["Id", "Name"], ["u-1", "Budi"]]})
    assert main(["merge", "data/s.xlsx", "data/t.xlsx", "--mode", "nisn"]) == EXIT_FATAL
    assert "ERROR target dataset has no 'nisn' column" in capsys.readouterr().out
