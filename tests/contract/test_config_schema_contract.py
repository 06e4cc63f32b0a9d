from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from sheetweaver.config.loader import SCHEMA_PATH

"""Config schema contract: the bundled schema accepts the shipped sample and rejects unknown keys."""

SAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "sheetweaver.yml"


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_shipped_sample_config_is_valid(schema):
    jsonschema.validate(yaml.safe_load(SAMPLE_CONFIG.read_text(encoding="utf-8")), schema)


def test_fixture_config_is_valid(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_empty_config_is_valid(schema):
    jsonschema.validate({}, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"database": {"host": "localhost"}},
        {"spreadsheet": {"url": "x", "tab": "All Case"}},
        {"spreadsheet": {"sheet_name": ""}},
        {"convert": {"status_map": {"open": 2}}},
        {"convert": {"template": []}},
        {"merge": {"name_aliases": "nama"}},
        {"merge": {"mode_aliases": {"nis": []}}},
        {"credentials": {"info": {}}},
    ],
)
def test_invalid_configs_are_rejected(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
