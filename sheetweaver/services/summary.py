from __future__ import annotations

from ..models.merge_result import MergeSummary
from ..models.results import ImportResult, UpdateResult
from ..models.student_record import ScanResult

"""SUMMARY line rendering.

Each line is ``SUMMARY key=value ...`` with a fixed key order so scripts can
grep it. The CLI strips the label and hands the rest to ``log_summary``.
"""

__all__ = [
    "SUMMARY_PREFIX",
    "render_scan_summary",
    "render_merge_summary",
    "render_update_summary",
    "render_import_summary",
]

SUMMARY_PREFIX = "SUMMARY "


def render_scan_summary(result: ScanResult) -> str:
    """
    >>> from sheetweaver.models.student_record import ScanResult
    >>> render_scan_summary(ScanResult([], [], [], scanned_sheet_count=3))
    'SUMMARY sheets=3 duplicates=0 empty_id=0 empty_dob=0 rejected=0'
    """
    return (
        f"{SUMMARY_PREFIX}sheets={result.scanned_sheet_count} "
        f"duplicates={len(result.duplicates)} "
        f"empty_id={len(result.empty_id)} "
        f"empty_dob={len(result.empty_dob)} "
        f"rejected={len(result.rejected)}"
    )


def render_merge_summary(summary: MergeSummary, unmatched_target: int | None = None) -> str:
    line = (
        f"{SUMMARY_PREFIX}total={summary.total} existing={summary.existing} "
        f"matched={summary.matched} unmatched={summary.unmatched}"
    )
    if unmatched_target is not None:
        line += f" unmatched_target={unmatched_target}"
    return line


def render_update_summary(result: UpdateResult) -> str:
    return f"{SUMMARY_PREFIX}updated={result.updated_count} no_op={str(result.no_op).lower()}"


def render_import_summary(result: ImportResult) -> str:
    return (
        f"{SUMMARY_PREFIX}imported={result.imported_count} "
        f"duplicates={result.duplicate_count}"
    )
