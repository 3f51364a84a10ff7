"""
Append-only row storage for one refresh cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from opsboard.data.models import Row


@dataclass
class CountLabel:
    """The "Reports (N)" label shared by ingestion and filtering; last writer wins."""

    count: int = 0

    def write(self, count: int) -> None:
        self.count = count

    @property
    def text(self) -> str:
        return f"Reports ({self.count})"


@dataclass
class SortState:
    """Direction indicator per column; at most one column holds a direction."""

    indicators: Dict[int, str] = field(default_factory=dict)

    def get(self, column: int) -> Optional[str]:
        return self.indicators.get(column)

    def activate(self, column: int, direction: str) -> None:
        self.indicators = {column: direction}

    @property
    def active(self) -> Optional[tuple]:
        if not self.indicators:
            return None
        return next(iter(self.indicators.items()))


class TableModel:
    """Rows grouped in segments; each segment is sorted independently.

    Rows are only ever appended. Visibility is recomputed by the filter engine
    and kept outside the rows themselves.
    """

    def __init__(self, segments: int = 1):
        self.segments: List[List[Row]] = [[] for _ in range(max(1, segments))]
        self.visible: Dict[int, bool] = {}

    def copy(self) -> "TableModel":
        """A new model over the same rows and order; visibility starts empty."""
        clone = TableModel(segments=len(self.segments))
        clone.segments = [list(segment) for segment in self.segments]
        return clone

    def append(self, row: Row, segment: int = 0) -> None:
        self.segments[segment].append(row)

    def rows(self) -> Iterator[Row]:
        for segment in self.segments:
            yield from segment

    def __len__(self) -> int:
        return sum(len(segment) for segment in self.segments)

    def is_visible(self, row: Row) -> bool:
        return self.visible.get(id(row), True)

    def visible_rows(self) -> List[Row]:
        return [row for row in self.rows() if self.is_visible(row)]
