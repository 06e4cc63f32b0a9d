from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Tabular data models.

``TabularDataset`` is the header + rows shape every service consumes.
``WorkbookGrid`` keeps the raw cell grid of each sheet for the services that
detect their own header row (duplicate scanner).
"""

__all__ = [
    "Row",
    "TabularDataset",
    "WorkbookGrid",
]

Row = dict[str, Any]


@dataclass(frozen=True)
class TabularDataset:
    """Ordered headers plus rows keyed by header.

    Row order is significant (tie-breaking in matching) and is preserved by
    every service unless a sort is explicitly requested.
    """
    headers: list[str]
    rows: list[Row]
    name: str = ""  # source file name, informational

    def __post_init__(self) -> None:
        known = set(self.headers)
        for i, row in enumerate(self.rows):
            extra = set(row) - known
            if extra:
                raise ValueError(f"row {i} has keys outside headers: {sorted(extra)}")

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class WorkbookGrid:
    """Raw grids of every sheet in one workbook (sheet name -> rows of cells)."""
    name: str
    sheets: dict[str, list[list[Any]]] = field(default_factory=dict)
