from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from sheetweaver.errors import UndoStateError

"""Models for the Google Sheet update / import / undo flow.

Undo payloads are persisted between CLI invocations, so both kinds know how
to round-trip through a plain dict. ``undo_payload_from_dict`` rejects
anything that does not look like a payload we produced.
"""

__all__ = [
    "SheetRowInfo",
    "ChangeRecord",
    "ImportUndo",
    "UpdateUndo",
    "UndoPayload",
    "undo_payload_from_dict",
]


@dataclass(frozen=True)
class SheetRowInfo:
    """Current values of one indexed sheet row."""
    row_index: int  # 1-based sheet row
    status: str
    ticket_ref: str
    resolution: str
    title: str


@dataclass(frozen=True)
class ChangeRecord:
    """Pending (or applied) change for a single sheet row.

    ``new_*`` fields are only set for the fields whose change flag is true.
    """
    title: str
    row_index: int
    old_status: str
    old_ticket_ref: str
    old_resolution: str
    status_changed: bool = False
    ticket_changed: bool = False
    resolution_changed: bool = False
    new_status: str | None = None
    new_ticket_ref: str | None = None
    new_resolution: str | None = None

    @property
    def has_change(self) -> bool:
        return self.status_changed or self.ticket_changed or self.resolution_changed

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ChangeRecord:
        return ChangeRecord(
            title=str(data["title"]),
            row_index=int(data["row_index"]),
            old_status=str(data.get("old_status", "")),
            old_ticket_ref=str(data.get("old_ticket_ref", "")),
            old_resolution=str(data.get("old_resolution", "")),
            status_changed=bool(data.get("status_changed", False)),
            ticket_changed=bool(data.get("ticket_changed", False)),
            resolution_changed=bool(data.get("resolution_changed", False)),
            new_status=data.get("new_status"),
            new_ticket_ref=data.get("new_ticket_ref"),
            new_resolution=data.get("new_resolution"),
        )


@dataclass(frozen=True)
class ImportUndo:
    """Rows appended by one import: ``count`` rows starting at ``start_index`` (0-based)."""
    target_id: str  # spreadsheet id
    range_id: Any  # numeric sheet id, validated at undo time
    start_index: int
    count: int
    kind: str = "import"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UpdateUndo:
    """Prior values of every row touched by one applied update."""
    target_id: str
    changes: tuple[ChangeRecord, ...]
    kind: str = "update"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "target_id": self.target_id,
            "changes": [c.to_dict() for c in self.changes],
        }


UndoPayload = ImportUndo | UpdateUndo


def undo_payload_from_dict(data: Any) -> UndoPayload:
    if not isinstance(data, dict):
        raise UndoStateError("Undo payload is not an object.")
    kind = data.get("kind")
    try:
        if kind == "import":
            return ImportUndo(
                target_id=str(data["target_id"]),
                range_id=data["range_id"],
                start_index=int(data["start_index"]),
                count=int(data["count"]),
            )
        if kind == "update":
            return UpdateUndo(
                target_id=str(data["target_id"]),
                changes=tuple(ChangeRecord.from_dict(c) for c in data["changes"]),
            )
    except (KeyError, TypeError, ValueError) as e:
        raise UndoStateError(f"Malformed {kind} undo payload: {e}") from e
    raise UndoStateError(f"Unknown undo payload kind: {kind!r}")
