from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import MatchError
from ..models.config_models import MergeConfig
from ..models.dataset import Row
from ..models.merge_result import NO_MATCH, MergeResult, Recommendation
from .normalize import find_header, name_distance, normalize_name

"""Manual and recommendation matching over the leftovers of a merge.

Pools are tuples. Confirming a pair never touches the pools it was given;
it returns new pools without the two rows (compared by identity, so two
rows with equal contents stay distinct).
"""

__all__ = [
    "MatchPools",
    "confirm_match",
    "recommend_matches",
    "row_name",
]


@dataclass(frozen=True)
class MatchPools:
    """Still-unmatched rows plus the rows confirmed so far."""
    source: tuple[Row, ...]
    target: tuple[Row, ...]
    matched: tuple[Row, ...] = ()
    source_headers: tuple[str, ...] = ()
    target_headers: tuple[str, ...] = ()

    @staticmethod
    def from_merge(result: MergeResult) -> MatchPools:
        return MatchPools(
            source=result.unmatched_source,
            target=result.unmatched_target,
            source_headers=result.source_headers,
            target_headers=result.target_headers,
        )


def row_name(row: Row, headers: Sequence[str] | None = None, aliases: Sequence[str] | None = None) -> str:
    """Raw name value of a row, resolved through the name aliases."""
    aliases = aliases or MergeConfig().name_aliases
    header = find_header(list(headers) if headers else list(row), aliases)
    if header is None:
        return ""
    value = row.get(header)
    return value if isinstance(value, str) else ""


def _without(pool: tuple[Row, ...], row: Row, side: str) -> tuple[Row, ...]:
    for i, candidate in enumerate(pool):
        if candidate is row:
            return pool[:i] + pool[i + 1:]
    raise MatchError(f"selected {side} row is not in the unmatched {side} pool")


def confirm_match(pools: MatchPools, source_row: Row, target_row: Row) -> tuple[MatchPools, Row]:
    """Pair one source row with one target row.

    Returns the new pools and the merged row (target values win on key
    collision). Raises MatchError when either row is not in its pool.
    """
    source = _without(pools.source, source_row, "source")
    target = _without(pools.target, target_row, "target")
    merged = {**source_row, **target_row}
    return (
        MatchPools(
            source=source,
            target=target,
            matched=pools.matched + (merged,),
            source_headers=pools.source_headers,
            target_headers=pools.target_headers,
        ),
        merged,
    )


def recommend_matches(
    source: Sequence[Row],
    target: Sequence[Row],
    source_headers: Sequence[str] | None = None,
    target_headers: Sequence[str] | None = None,
    aliases: Sequence[str] | None = None,
) -> list[Recommendation]:
    """Greedy nearest-name pairing.

    Each source row, in input order, takes the still-available target with
    the smallest edit distance (first one on ties). Source rows without a
    name and leftover targets become NO_MATCH entries. The list is sorted by
    distance ascending with every NO_MATCH entry last; the sort is stable.
    """
    available: list[tuple[str, Row]] = []
    for row in target:
        name = normalize_name(row_name(row, target_headers, aliases))
        available.append((name, row))

    out: list[Recommendation] = []
    for row in source:
        name = normalize_name(row_name(row, source_headers, aliases))
        if not name:
            out.append(Recommendation(source=row, target=None, distance=NO_MATCH))
            continue
        best_index = -1
        best_distance = 0
        for i, (target_name, _) in enumerate(available):
            if not target_name:
                continue
            distance = name_distance(name, target_name)
            if best_index == -1 or distance < best_distance:
                best_index, best_distance = i, distance
        if best_index == -1:
            out.append(Recommendation(source=row, target=None, distance=NO_MATCH))
            continue
        _, best = available.pop(best_index)
        out.append(Recommendation(source=row, target=best, distance=best_distance))

    for _, row in available:
        out.append(Recommendation(source=None, target=row, distance=NO_MATCH))

    out.sort(key=lambda r: (r.distance == NO_MATCH, r.distance))
    return out
