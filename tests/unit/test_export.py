from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from sheetweaver.errors import InputFormatError
from sheetweaver.models.config_models import MergeConfig
from sheetweaver.models.dataset import TabularDataset
from sheetweaver.services.export import final_rows, project_result_rows, write_rows_xlsx
from sheetweaver.services.merge import merge_datasets


def _merged():
    source = TabularDataset(["Nama", "NISN"], [{"Nama": "Budi", "NISN": "0051"}, {"Nama": "Sari", "NISN": "0052"}])
    target = TabularDataset(
        ["Id", "Name", "NISN"],
        [{"Id": "u-1", "Name": "budi", "NISN": ""}, {"Id": "u-2", "Name": "Sary", "NISN": ""}],
    )
    return merge_datasets(source, target, "nisn"), source, target


def test_final_rows_appends_manual_matches():
    result, _, _ = _merged()
    manual = {"Nama": "Sari", "Id": "u-2", "Name": "Sary", "NISN": "0052"}
    assert final_rows(result, [manual]) == [*result.merged_rows, manual]


def test_project_takes_mode_value_from_source_column():
    source = TabularDataset(["Nama", "Tahun Ajaran"], [{"Nama": "Budi", "Tahun Ajaran": "2024/2025"}])
    target = TabularDataset(["Id", "Username", "Year"], [{"Id": 7, "Username": "budi", "Year": ""}])
    result = merge_datasets(source, target, "year")
    rows = project_result_rows(result.merged_rows, "year", target.headers, source.headers)
    assert rows == [{"No": 1, "Id": 7, "Name": "budi", "Year": "2024/2025"}]


def test_project_nisn_rows():
    result, source, target = _merged()
    manual = {"Nama": "Sari", "NISN": "0052", "Id": "u-2", "Name": "Sary"}
    rows = project_result_rows(final_rows(result, [manual]), "nisn", target.headers, source.headers)
    assert [(r["No"], r["Id"], r["Name"]) for r in rows] == [(1, "u-1", "budi"), (2, "u-2", "Sary")]


def test_write_rows_xlsx(temp_workdir: Path):
    rows = [{"No": 1, "Id": "u-1", "Name": "budi", "NISN": "0051"}]
    out = write_rows_xlsx(rows, "nisn", temp_workdir / "out" / "merged.xlsx")
    df = pd.read_excel(out, sheet_name="Merged Data", header=None, dtype=str)
    assert df.iloc[0].tolist() == ["No", "id", "name", "nisn"]
    assert df.iloc[1].tolist()[1:] == ["Id", "Name", "NISN"]
    assert df.iloc[2].tolist() == ["1", "u-1", "budi", "0051"]


def test_write_rows_xlsx_without_rows(temp_workdir: Path):
    with pytest.raises(InputFormatError, match="No Data to Download"):
        write_rows_xlsx([], "nis", temp_workdir / "x.xlsx")


def test_unknown_mode():
    with pytest.raises(InputFormatError):
        project_result_rows([], "kelas", ["Id"])


def test_configured_mode_projects_and_writes(temp_workdir: Path):
    config = MergeConfig(mode_aliases={"kelas": ("kelas", "rombel")})
    merged = [{"Nama": "Budi", "Rombel": "X-1", "Id": "u-1", "Name": "Budi", "Kelas": ""}]
    rows = project_result_rows(merged, "Kelas", ["Id", "Name", "Kelas"], ["Nama", "Rombel"], config)
    assert rows == [{"No": 1, "Id": "u-1", "Name": "Budi", "Kelas": "X-1"}]

    out = write_rows_xlsx(rows, "kelas", temp_workdir / "kelas.xlsx", config)
    df = pd.read_excel(out, sheet_name="Merged Data", header=None, dtype=str)
    assert df.iloc[0].tolist() == ["No", "id", "name", "kelas"]
    assert df.iloc[2].tolist() == ["1", "u-1", "Budi", "X-1"]
