from __future__ import annotations

import json
from pathlib import Path

from ..errors import UndoStateError
from ..models.sheet_change import UndoPayload, undo_payload_from_dict

"""Persistence of the last undo payload between CLI runs.

One slot only: saving replaces the previous payload. After a successful
undo the file is discarded so the same payload cannot be replayed.
"""

__all__ = [
    "DEFAULT_UNDO_PATH",
    "save_undo",
    "discard_undo",
    "peek_undo",
]

DEFAULT_UNDO_PATH = Path("./logs/undo.json")


def save_undo(payload: UndoPayload, path: Path = DEFAULT_UNDO_PATH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def peek_undo(path: Path = DEFAULT_UNDO_PATH) -> UndoPayload | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise UndoStateError(f"undo file is corrupt: {e}") from e
    return undo_payload_from_dict(data)


def discard_undo(path: Path = DEFAULT_UNDO_PATH) -> None:
    """Drop the stored payload once it has been consumed."""
    path.unlink(missing_ok=True)
