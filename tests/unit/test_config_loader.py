from __future__ import annotations

import json
from pathlib import Path

import pytest

from sheetweaver.config.loader import ConfigError, default_config, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("GCP_CREDENTIALS", raising=False)
    monkeypatch.delenv("SHEETWEAVER_SHEET_URL", raising=False)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.spreadsheet.url.endswith("/d/1AbC-dEf_123/edit#gid=0")
    assert cfg.spreadsheet.sheet_name == "All Case"
    assert cfg.credentials.file == "credentials/gcp-credentials.json"
    assert cfg.credentials.info is None
    assert cfg.timezone == "Asia/Jakarta"
    # user entries are merged over the default status map
    assert cfg.convert.status_map["escalated"] == "L3"
    assert cfg.convert.status_map["resolved"] == "Solved"
    assert cfg.merge.name_aliases == ("nama", "name", "username", "nama lengkap")
    assert cfg.merge.mode_aliases["nis"] == ("nis", "no. induk")


def test_name_aliases_extend_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "aliases.yml"
    p.write_text('merge:\n  name_aliases: [" Nama Lengkap ", "name"]\n', encoding="utf-8")
    cfg = load_config(p)
    assert cfg.merge.name_aliases == ("nama", "name", "username", "nama lengkap")


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "absent.yml")


def test_load_config_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text("spreadsheet: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_load_config_schema_violation(temp_workdir: Path):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text("spreadsheet:\n  url: x\ndatabase:\n  host: localhost\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p)


def test_load_config_top_level_list(temp_workdir: Path):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="top level must be a mapping"):
        load_config(p)


def test_empty_file_gives_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "empty.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == default_config()


def test_mode_aliases_are_lower_cased_and_merged(temp_workdir: Path):
    p = temp_workdir / "config" / "c.yml"
    p.write_text("merge:\n  mode_aliases:\n    NIS: [nomor induk]\n    kelas: [kelas]\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.merge.mode_aliases["nis"] == ("nomor induk",)
    assert cfg.merge.mode_aliases["kelas"] == ("kelas",)
    assert cfg.merge.mode_aliases["nisn"] == ("nisn",)


def test_environment_overrides(write_config: Path, monkeypatch):
    info = {"client_email": "bot@example.iam.gserviceaccount.com", "private_key": "k"}
    monkeypatch.setenv("GCP_CREDENTIALS", json.dumps(info))
    monkeypatch.setenv("SHEETWEAVER_SHEET_URL", "https://docs.google.com/spreadsheets/d/OTHER/edit")
    cfg = load_config(write_config)
    assert cfg.credentials.info == info
    assert "/d/OTHER/" in cfg.spreadsheet.url


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
def test_bad_credentials_env(write_config: Path, monkeypatch, raw):
    monkeypatch.setenv("GCP_CREDENTIALS", raw)
    with pytest.raises(ConfigError, match="GCP_CREDENTIALS"):
        load_config(write_config)


def test_default_config():
    cfg = default_config()
    assert cfg.spreadsheet.url is None
    assert cfg.convert.default_status == "L1"
    assert cfg.timezone == "UTC"
