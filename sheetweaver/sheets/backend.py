from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from ..errors import ExternalCollaboratorError, InputFormatError
from ..models.config_models import CredentialsConfig

"""Spreadsheet backend.

``SheetBackend`` is everything the sheet operations need from Google
Sheets. ``GspreadBackend`` implements it with gspread on a service-account
credential; tests use an in-memory fake with the same surface.

Values are written with ``USER_ENTERED`` so formula strings evaluate.
Every gspread / google-auth failure leaves this module as
``ExternalCollaboratorError`` carrying the backend message.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SCOPES",
    "SheetRef",
    "SheetProperties",
    "SheetBackend",
    "GspreadBackend",
    "parse_spreadsheet_id",
    "load_credentials",
    "open_backend",
]

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
_SPREADSHEET_ID = re.compile(r"spreadsheets/d/([a-zA-Z0-9\-_]+)")

CellGrid = list[list[Any]]


@dataclass(frozen=True)
class SheetRef:
    collection_id: str  # spreadsheet id
    sheet_name: str


@dataclass(frozen=True)
class SheetProperties:
    sheet_id: int
    title: str
    row_count: int


class SheetBackend(Protocol):
    def get_title(self) -> str: ...

    def get_properties(self, sheet_name: str) -> SheetProperties | None: ...

    def read_range(self, a1: str) -> CellGrid: ...

    def read_ranges(self, ranges: Sequence[str]) -> list[CellGrid]: ...

    def write_range(self, a1: str, values: CellGrid) -> str | None: ...

    def append_rows(self, sheet_id: int, count: int) -> None: ...

    def delete_rows(self, sheet_id: int, start_index: int, end_index: int) -> None: ...

    def batch_update(self, updates: Sequence[tuple[str, CellGrid]]) -> None: ...


def parse_spreadsheet_id(url: str | None) -> str:
    if not url or not url.strip():
        raise InputFormatError("URL is empty. Please provide a Google Sheet URL.")
    m = _SPREADSHEET_ID.search(url)
    if m is None:
        raise InputFormatError("Invalid Google Sheets URL format.")
    return m.group(1)


def load_credentials(config: CredentialsConfig) -> Credentials:
    """Service-account credentials from inline JSON (env) or the key file."""
    info = config.info
    if info is None:
        if not config.file:
            raise ExternalCollaboratorError("no service account credentials configured")
        path = Path(config.file)
        try:
            info = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ExternalCollaboratorError(
                f"Could not load Google Cloud credentials from {path}: {e}"
            ) from e
    info = dict(info)
    if not info.get("client_email") or not info.get("private_key"):
        raise ExternalCollaboratorError("Google Cloud credentials are not configured correctly.")
    # keys pasted into env vars often carry literal "\n"
    info["private_key"] = str(info["private_key"]).replace("\\n", "\n")
    try:
        return Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, GoogleAuthError) as e:
        raise ExternalCollaboratorError(f"invalid service account credentials: {e}") from e


class GspreadBackend:
    """SheetBackend on one spreadsheet opened through gspread."""

    def __init__(self, client: gspread.Client, spreadsheet_id: str) -> None:
        self.spreadsheet_id = spreadsheet_id
        try:
            self._spreadsheet = client.open_by_key(spreadsheet_id)
        except (gspread.exceptions.GSpreadException, GoogleAuthError) as e:
            raise ExternalCollaboratorError(str(e)) from e

    def _call(self, what: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (gspread.exceptions.GSpreadException, GoogleAuthError) as e:
            logger.debug("%s failed: %s", what, e)
            raise ExternalCollaboratorError(str(e)) from e

    def get_title(self) -> str:
        return self._call("get_title", lambda: self._spreadsheet.title)

    def get_properties(self, sheet_name: str) -> SheetProperties | None:
        wanted = sheet_name.strip().lower()
        for ws in self._call("worksheets", self._spreadsheet.worksheets):
            if ws.title.strip().lower() == wanted:
                return SheetProperties(sheet_id=ws.id, title=ws.title, row_count=ws.row_count)
        return None

    def read_range(self, a1: str) -> CellGrid:
        resp = self._call("values_get", self._spreadsheet.values_get, a1)
        return resp.get("values", [])

    def read_ranges(self, ranges: Sequence[str]) -> list[CellGrid]:
        resp = self._call("values_batch_get", self._spreadsheet.values_batch_get, list(ranges))
        value_ranges = resp.get("valueRanges", [])
        # the API answers in request order; pad in case trailing empties are dropped
        out = [vr.get("values", []) for vr in value_ranges]
        out.extend([] for _ in range(len(ranges) - len(out)))
        return out

    def write_range(self, a1: str, values: CellGrid) -> str | None:
        resp = self._call(
            "values_update",
            self._spreadsheet.values_update,
            a1,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": values},
        )
        return resp.get("updatedRange")

    def append_rows(self, sheet_id: int, count: int) -> None:
        body = {
            "requests": [
                {"appendDimension": {"sheetId": sheet_id, "dimension": "ROWS", "length": count}}
            ]
        }
        self._call("append_rows", self._spreadsheet.batch_update, body)

    def delete_rows(self, sheet_id: int, start_index: int, end_index: int) -> None:
        body = {
            "requests": [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": sheet_id,
                            "dimension": "ROWS",
                            "startIndex": start_index,
                            "endIndex": end_index,
                        }
                    }
                }
            ]
        }
        self._call("delete_rows", self._spreadsheet.batch_update, body)

    def batch_update(self, updates: Sequence[tuple[str, CellGrid]]) -> None:
        body = {
            "valueInputOption": "USER_ENTERED",
            "data": [{"range": a1, "values": values} for a1, values in updates],
        }
        self._call("values_batch_update", self._spreadsheet.values_batch_update, body=body)


def open_backend(url: str | None, credentials: CredentialsConfig) -> GspreadBackend:
    """Authorize and open the spreadsheet behind ``url``."""
    spreadsheet_id = parse_spreadsheet_id(url)
    creds = load_credentials(credentials)
    client = gspread.authorize(creds)
    return GspreadBackend(client, spreadsheet_id)
