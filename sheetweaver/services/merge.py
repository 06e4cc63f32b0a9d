from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from ..errors import InputFormatError, SchemaMismatchError
from ..models.config_models import MergeConfig
from ..models.dataset import Row, TabularDataset
from ..models.merge_result import MergeResult, MergeSummary
from .normalize import find_header, normalize_name

"""Exact-key merge engine.

Joins a source dataset onto a target dataset by normalized name, filling
the mode field (nisn / nis / year) of target rows that do not have it yet.

Elimination rule: a target row whose mode field already holds a value is
"done". Source rows carrying the same normalized name are counted as
``existing`` and dropped instead of being matched again.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "merge_datasets",
    "resolve_mode_field",
]


def _has_value(value: object) -> bool:
    if value is None:
        return False
    return str(value).strip() != ""


def resolve_mode_field(
    headers: Sequence[str],
    mode: str,
    mode_aliases: Mapping[str, Sequence[str]],
) -> str | None:
    key = mode.strip().lower()
    if key not in mode_aliases:
        raise InputFormatError(
            f"unknown merge mode '{mode}' (expected one of: {', '.join(sorted(mode_aliases))})"
        )
    return find_header(headers, mode_aliases[key])


def _require_header(dataset: TabularDataset, aliases: Iterable[str], label: str, what: str) -> str:
    header = find_header(dataset.headers, aliases)
    if header is None:
        raise SchemaMismatchError(
            f"{label} dataset has no {what} column (headers: {', '.join(dataset.headers)})",
            missing=[what],
        )
    return header


def merge_datasets(
    source: TabularDataset,
    target: TabularDataset,
    mode: str,
    config: MergeConfig | None = None,
) -> MergeResult:
    """Merge ``source`` into ``target`` by normalized name.

    Args:
        source: rows that carry the value being filled in
        target: rows to fill (e.g. the student export of the platform)
        mode: key of ``config.mode_aliases`` naming the elimination field
        config: header aliases, defaults to ``MergeConfig()``

    Returns:
        MergeResult whose merged rows are ``{**source_row, **target_row}``.

    Raises:
        InputFormatError: unknown mode or an empty dataset
        SchemaMismatchError: name column or mode column missing
    """
    config = config or MergeConfig()
    if not source.rows:
        raise InputFormatError("source dataset has no rows")
    if not target.rows:
        raise InputFormatError("target dataset has no rows")

    source_name = _require_header(source, config.name_aliases, "source", "name")
    target_name = _require_header(target, config.name_aliases, "target", "name")
    field = resolve_mode_field(target.headers, mode, config.mode_aliases)
    if field is None:
        raise SchemaMismatchError(
            f"target dataset has no '{mode}' column "
            f"(accepted: {', '.join(config.mode_aliases[mode.strip().lower()])})",
            missing=[mode],
        )

    eliminated: set[str] = set()
    eligible: list[tuple[str, Row]] = []
    for row in target.rows:
        key = normalize_name(row.get(target_name))
        if not key:
            continue
        if _has_value(row.get(field)):
            eliminated.add(key)
        else:
            eligible.append((key, row))

    lookup: dict[str, Row] = {}
    for key, row in eligible:
        if key in eliminated:
            continue
        # first wins; later rows with the same normalized name stay unmatched
        lookup.setdefault(key, row)

    merged: list[Row] = []
    unmatched_source: list[Row] = []
    used: set[int] = set()
    existing = 0
    for row in source.rows:
        key = normalize_name(row.get(source_name))
        if key and key in eliminated:
            existing += 1
            continue
        hit = lookup.get(key) if key else None
        if hit is None or id(hit) in used:
            unmatched_source.append(row)
            continue
        used.add(id(hit))
        merged.append({**row, **hit})

    unmatched_target = [row for _, row in eligible if id(row) not in used]

    summary = MergeSummary(
        total=len(source.rows),
        existing=existing,
        matched=len(merged),
        unmatched=len(unmatched_source),
    )
    logger.debug(
        "merge mode=%s total=%d existing=%d matched=%d unmatched=%d unmatched_target=%d",
        mode, summary.total, summary.existing, summary.matched, summary.unmatched,
        len(unmatched_target),
    )
    return MergeResult(
        merged_rows=tuple(merged),
        unmatched_source=tuple(unmatched_source),
        unmatched_target=tuple(unmatched_target),
        summary=summary,
        source_headers=tuple(source.headers),
        target_headers=tuple(target.headers),
        mode=mode.strip().lower(),
    )
