from __future__ import annotations

from pathlib import Path

import pytest

from sheetweaver.errors import UndoStateError
from sheetweaver.models.sheet_change import ChangeRecord, ImportUndo, UpdateUndo
from sheetweaver.services.undo_store import discard_undo, peek_undo, save_undo


def test_save_peek_discard(tmp_path: Path):
    path = tmp_path / "logs" / "undo.json"
    assert peek_undo(path) is None

    payload = UpdateUndo("sid", (ChangeRecord("T #1", 3, "L2", "", "", status_changed=True, new_status="L3"),))
    save_undo(payload, path)
    assert peek_undo(path) == payload
    # peeking does not consume
    assert peek_undo(path) == payload

    discard_undo(path)
    assert peek_undo(path) is None
    discard_undo(path)


def test_save_replaces_previous_payload(tmp_path: Path):
    path = tmp_path / "undo.json"
    save_undo(ImportUndo("sid", 1, 4, 2), path)
    save_undo(ImportUndo("sid", 1, 9, 1), path)
    assert peek_undo(path) == ImportUndo("sid", 1, 9, 1)


def test_corrupt_file(tmp_path: Path):
    path = tmp_path / "undo.json"
    path.write_text("{oops", encoding="utf-8")
    with pytest.raises(UndoStateError, match="corrupt"):
        peek_undo(path)
