from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from sheetweaver.models.config_models import (
    AppConfig,
    ConvertConfig,
    CredentialsConfig,
    MergeConfig,
    SpreadsheetConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/sheetweaver.yml``)
- Validate against the bundled ``config_schema.json``
- Apply defaults for every omitted section
- Let GCP_CREDENTIALS / SHEETWEAVER_SHEET_URL override file values
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "default_config",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/sheetweaver.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

ENV_CREDENTIALS = "GCP_CREDENTIALS"
ENV_SHEET_URL = "SHEETWEAVER_SHEET_URL"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/unreadable or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _credentials_from_env() -> dict[str, Any] | None:
    raw = os.environ.get(ENV_CREDENTIALS)
    if not raw:
        return None
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{ENV_CREDENTIALS} is not valid JSON: {e}") from e
    if not isinstance(info, dict):
        raise ConfigError(f"{ENV_CREDENTIALS} must hold a JSON object")
    return info


def _build(data: dict[str, Any]) -> AppConfig:
    sheet_raw = data.get("spreadsheet") or {}
    cred_raw = data.get("credentials") or {}
    conv_raw = data.get("convert") or {}
    merge_raw = data.get("merge") or {}

    spreadsheet = SpreadsheetConfig(
        url=os.environ.get(ENV_SHEET_URL) or sheet_raw.get("url"),
        sheet_name=sheet_raw.get("sheet_name", "All Case"),
    )
    credentials = CredentialsConfig(
        file=cred_raw.get("file", CredentialsConfig.file),
        info=_credentials_from_env(),
    )

    convert_defaults = ConvertConfig()
    status_map = dict(convert_defaults.status_map)
    # keys are matched case-insensitively
    status_map.update({k.strip().lower(): v for k, v in (conv_raw.get("status_map") or {}).items()})
    convert = ConvertConfig(
        template=conv_raw.get("template"),
        status_map=status_map,
        default_status=conv_raw.get("default_status", convert_defaults.default_status),
    )

    merge_defaults = MergeConfig()
    mode_aliases = dict(merge_defaults.mode_aliases)
    mode_aliases.update(
        {k.strip().lower(): tuple(v) for k, v in (merge_raw.get("mode_aliases") or {}).items()}
    )
    # configured names extend the defaults, keeping order and dropping repeats
    name_aliases = dict.fromkeys(
        [*merge_defaults.name_aliases, *(a.strip().lower() for a in merge_raw.get("name_aliases") or ())]
    )
    merge = MergeConfig(
        name_aliases=tuple(name_aliases),
        mode_aliases=mode_aliases,
    )
    return AppConfig(
        spreadsheet=spreadsheet,
        credentials=credentials,
        convert=convert,
        merge=merge,
        timezone=data.get("timezone", "UTC"),
    )


def default_config() -> AppConfig:
    """Config with every default applied (used when no file is present)."""
    return _build({})


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)
    return _build(data)
