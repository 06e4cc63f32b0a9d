from __future__ import annotations

from dataclasses import dataclass

from .dataset import Row

"""Merge and matching models.

MergeResult is immutable once built; manual matches live beside it in the
caller (see ``services.matching.MatchPools``) and are never appended in place.
"""

__all__ = [
    "MergeSummary",
    "MergeResult",
    "Recommendation",
    "NO_MATCH",
]

NO_MATCH = -1  # similarity sentinel for rows with no candidate


@dataclass(frozen=True)
class MergeSummary:
    total: int  # source rows considered
    existing: int  # source rows eliminated (target already has data)
    matched: int
    unmatched: int  # == len(unmatched_source)


@dataclass(frozen=True)
class MergeResult:
    merged_rows: tuple[Row, ...]
    unmatched_source: tuple[Row, ...]
    unmatched_target: tuple[Row, ...]
    summary: MergeSummary
    source_headers: tuple[str, ...] = ()
    target_headers: tuple[str, ...] = ()
    mode: str = ""


@dataclass(frozen=True)
class Recommendation:
    """One line of the recommendation list.

    ``source`` or ``target`` is None for "no match" placements, which always
    carry ``distance == NO_MATCH``.
    """
    source: Row | None
    target: Row | None
    distance: int

    @property
    def is_pair(self) -> bool:
        return self.source is not None and self.target is not None
