from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from .errors import SchemaMismatchError, SheetweaverError
from .models.config_models import MergeConfig
from .models.dataset import Row, TabularDataset, WorkbookGrid
from .models.merge_result import MergeResult, Recommendation
from .models.results import (
    ErrorResult,
    ImportResult,
    SheetInfo,
    UndoResult,
    UpdatePreview,
    UpdateResult,
)
from .models.sheet_change import UndoPayload
from .models.student_record import ScanResult
from .services import duplicates, matching, merge as merge_service, sheet_ops
from .sheets.backend import SheetBackend, SheetRef

"""Public entry points.

Every function returns either its result or an ``ErrorResult``; service
exceptions never cross this boundary. Sheet operations take the backend as
an argument so callers decide how it is authenticated.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "scan_for_duplicates",
    "merge",
    "recommend_matches",
    "preview_sheet_update",
    "apply_sheet_update",
    "import_rows",
    "undo",
    "verify_sheet",
]

T = TypeVar("T")


def _as_result(fn: Callable[..., T]) -> Callable[..., T | ErrorResult]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T | ErrorResult:
        try:
            return fn(*args, **kwargs)
        except SheetweaverError as e:
            logger.error("%s: %s", fn.__name__, e)
            details: dict[str, Any] = {}
            if isinstance(e, SchemaMismatchError):
                details["missing"] = list(e.missing)
            return ErrorResult(error=str(e), error_type=type(e).__name__, details=details)

    return wrapper


@_as_result
def scan_for_duplicates(workbooks: Sequence[WorkbookGrid]) -> ScanResult:
    return duplicates.scan_workbooks(workbooks)


@_as_result
def merge(
    source: TabularDataset,
    target: TabularDataset,
    mode: str,
    config: MergeConfig | None = None,
) -> MergeResult:
    return merge_service.merge_datasets(source, target, mode, config)


@_as_result
def recommend_matches(
    unmatched_source: Sequence[Row],
    unmatched_target: Sequence[Row],
    source_headers: Sequence[str] | None = None,
    target_headers: Sequence[str] | None = None,
) -> list[Recommendation]:
    return matching.recommend_matches(unmatched_source, unmatched_target, source_headers, target_headers)


@_as_result
def preview_sheet_update(
    rows: Sequence[Mapping[str, Any]], ref: SheetRef, backend: SheetBackend
) -> UpdatePreview:
    return sheet_ops.preview_update(backend, ref, rows)


@_as_result
def apply_sheet_update(
    rows: Sequence[Mapping[str, Any]], ref: SheetRef, backend: SheetBackend
) -> UpdateResult:
    return sheet_ops.apply_update(backend, ref, rows)


@_as_result
def import_rows(dataset: TabularDataset, ref: SheetRef, backend: SheetBackend) -> ImportResult:
    return sheet_ops.import_rows(backend, ref, dataset.rows)


@_as_result
def undo(payload: UndoPayload | None, ref: SheetRef, backend: SheetBackend) -> UndoResult:
    return sheet_ops.undo(backend, ref, payload)


@_as_result
def verify_sheet(ref: SheetRef, backend: SheetBackend) -> SheetInfo:
    title = backend.get_title()
    if not title:
        raise SheetweaverError("Could not retrieve the spreadsheet title.")
    return SheetInfo(title=title, spreadsheet_id=ref.collection_id)
