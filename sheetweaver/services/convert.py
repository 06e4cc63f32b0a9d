from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import InputFormatError
from ..models.config_models import ConvertConfig
from ..models.dataset import Row, TabularDataset
from .dates import parse_timestamp

"""Ticket export conversion.

Turns the helpdesk JSON export (one object per ticket, nested) into rows
shaped by a header template, ready for preview / update / import.
"""

__all__ = [
    "DEFAULT_TEMPLATE",
    "flatten_record",
    "map_status",
    "convert_tickets",
    "read_csv_tickets",
]

DEFAULT_TEMPLATE = (
    "Client Name", "Customer Name", "Status", "TICKET NUMBER", "Ticket Category",
    "Module", "Detail Module", "Created At", "Title", "Kolom kosong2",
    "Resolved At", "Ticket OP",
)

_TICKET_NUMBER = re.compile(r"#(\d+)")


def flatten_record(obj: Any, path: str = "", out: dict[str, Any] | None = None) -> dict[str, Any]:
    """Flatten nested objects into dotted keys.

    ``custom_fields`` lists become ``{field.name: field.value}``; any other
    list is kept as JSON text. A string holding a JSON object is spliced in
    with its inner keys at the top level.
    """
    if out is None:
        out = {}
    if isinstance(obj, list):
        if path.endswith("custom_fields"):
            for item in obj:
                if isinstance(item, Mapping) and isinstance(item.get("name"), str) and "value" in item:
                    out[item["name"]] = item["value"]
        elif path:
            out[path] = json.dumps(obj, ensure_ascii=False)
        return out
    if not isinstance(obj, Mapping):
        if path:
            out[path] = obj
        return out

    for key, value in obj.items():
        new_path = f"{path}.{key}" if path else str(key)
        if isinstance(value, Mapping | list):
            flatten_record(value, new_path, out)
        elif isinstance(value, str) and value.startswith("{") and value.endswith("}"):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                out[new_path] = value
                continue
            if isinstance(parsed, dict):
                out.update(parsed)
            else:
                out[new_path] = value
        else:
            out[new_path] = value
    return out


def map_status(value: Any, status_map: Mapping[str, str], default: str) -> str:
    text = "" if value is None else str(value)
    mapped = status_map.get(text.strip().lower(), text)
    return mapped or default


def _lookup(flat: Mapping[str, Any], header: str) -> Any:
    wanted = header.lower()
    for key, value in flat.items():
        if key.lower() == wanted:
            return value
    return ""


def _sort_key(row: Row) -> tuple[Any, ...]:
    created = parse_timestamp(row.get("Created At"))
    m = _TICKET_NUMBER.search(str(row.get("Title") or ""))
    number = int(m.group(1)) if m else None
    return (
        created is None,  # unparseable dates last
        created or datetime.min,
        number is None,
        number or 0,
    )


def _parse_payload(payload: Any) -> list[Any]:
    if isinstance(payload, str):
        if not payload.strip():
            raise InputFormatError("JSON input cannot be empty.")
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise InputFormatError(f"Invalid JSON: {e}") from e
    if not isinstance(payload, list):
        payload = [payload]
    if not payload:
        raise InputFormatError("JSON array is empty.")
    return payload


def convert_tickets(
    payload: Any,
    template: Sequence[str] | None = None,
    config: ConvertConfig | None = None,
) -> TabularDataset:
    """Convert a JSON export (text or parsed) into template-shaped rows.

    Rows are sorted by Created At, then by the ``#<n>`` ticket number in the
    title; rows without a ticket number come after numbered ones.
    """
    config = config or ConvertConfig()
    headers = [h.strip() for h in (template or config.template or DEFAULT_TEMPLATE)]
    records = _parse_payload(payload)

    rows: list[Row] = []
    for record in records:
        flat = flatten_record(record)
        row: Row = {}
        for header in headers:
            lower = header.lower()
            if lower.startswith("kolom kosong"):
                row[header] = ""
                continue
            value = _lookup(flat, header)
            if lower == "status":
                value = map_status(value, config.status_map, config.default_status)
            row[header] = "" if value is None else value
        rows.append(row)

    rows.sort(key=_sort_key)
    return TabularDataset(headers=headers, rows=rows, name="tickets")


def read_csv_tickets(path: Path) -> TabularDataset:
    """Load an already-converted CSV export (header on the first line)."""
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise InputFormatError(f"cannot read {Path(path).name}: {e}") from e
    headers = [str(c).strip() for c in df.columns]
    rows = [dict(zip(headers, values, strict=True)) for values in df.itertuples(index=False, name=None)]
    if not rows:
        raise InputFormatError(f"{Path(path).name} has no rows")
    return TabularDataset(headers=headers, rows=rows, name=Path(path).name)
