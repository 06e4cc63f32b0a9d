from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for sheetweaver.

Built by ``sheetweaver.config.loader.load_config`` from the YAML file after
schema validation. Environment variables (GCP_CREDENTIALS, SHEETWEAVER_SHEET_URL)
take precedence over the file values where noted.
"""

__all__ = [
    "SpreadsheetConfig",
    "CredentialsConfig",
    "ConvertConfig",
    "MergeConfig",
    "AppConfig",
]

DEFAULT_STATUS_MAP = {
    "resolved": "Solved",
    "open": "L2",
    "pending": "L1",
    "on hold": "L3",
    "on-hold": "L3",
    "new": "L1",
}


@dataclass(frozen=True)
class SpreadsheetConfig:
    """Target spreadsheet of the update / import / undo flow."""
    url: str | None  # full Google Sheets URL
    sheet_name: str = "All Case"


@dataclass(frozen=True)
class CredentialsConfig:
    """Service account credentials.

    ``info`` (inline JSON from GCP_CREDENTIALS) wins over ``file``.
    """
    file: str | None = "credentials/gcp-credentials.json"
    info: dict[str, object] | None = None


@dataclass(frozen=True)
class ConvertConfig:
    template: list[str] | None = None  # output headers, defaults to the sheet layout
    status_map: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_MAP))
    default_status: str = "L1"


@dataclass(frozen=True)
class MergeConfig:
    name_aliases: tuple[str, ...] = ("nama", "name", "username")
    mode_aliases: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {
            "nisn": ("nisn",),
            "nis": ("nis", "no. induk"),
            "year": ("tahun ajaran", "year"),
        }
    )


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    spreadsheet: SpreadsheetConfig
    credentials: CredentialsConfig
    convert: ConvertConfig
    merge: MergeConfig
    timezone: str = "UTC"
