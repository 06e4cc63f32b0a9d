"""Domain models for sheetweaver.

Re-exported here so services can import from ``sheetweaver.models``.
"""

from .config_models import AppConfig, ConvertConfig, CredentialsConfig, MergeConfig, SpreadsheetConfig
from .dataset import Row, TabularDataset, WorkbookGrid
from .issue_record import ISSUE_TYPES, IssueRecord
from .merge_result import NO_MATCH, MergeResult, MergeSummary, Recommendation
from .results import ErrorResult, ImportResult, SheetInfo, UndoResult, UpdatePreview, UpdateResult
from .sheet_change import (
    ChangeRecord,
    ImportUndo,
    SheetRowInfo,
    UndoPayload,
    UpdateUndo,
    undo_payload_from_dict,
)
from .student_record import RecordKind, ScanResult, SheetRejection, StudentRecord

__all__ = [
    "AppConfig",
    "ConvertConfig",
    "CredentialsConfig",
    "MergeConfig",
    "SpreadsheetConfig",
    "Row",
    "TabularDataset",
    "WorkbookGrid",
    "ISSUE_TYPES",
    "IssueRecord",
    "NO_MATCH",
    "MergeResult",
    "MergeSummary",
    "Recommendation",
    "ErrorResult",
    "ImportResult",
    "SheetInfo",
    "UndoResult",
    "UpdatePreview",
    "UpdateResult",
    "ChangeRecord",
    "ImportUndo",
    "SheetRowInfo",
    "UndoPayload",
    "UpdateUndo",
    "undo_payload_from_dict",
    "RecordKind",
    "ScanResult",
    "SheetRejection",
    "StudentRecord",
]
