"""
Column sorting for the board table.

`SortEngine.activate` implements header activation: direction toggling,
alternate sort keys, positional overrides, tie-break columns and null-last
ordering. `SortEngine.toggle` and `SortEngine.apply` are its two halves, so a
viewer can keep its own indicators and re-apply its sort to a copy of the
shared rows. `sort_by_seconds` is the plain numeric sort applied after every
row insertion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Dict, Hashable, List, Optional

from opsboard.config import TableSpec
from opsboard.data.models import Cell, Row
from opsboard.data.table import SortState, TableModel

ASCENDING = "ascending"
DESCENDING = "descending"

_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


@dataclass(frozen=True)
class SortCommand:
    column: int
    alternate: bool = False


@dataclass(frozen=True)
class ViewSort:
    """A resolved header sort: which column, which way, and the table version it was taken on."""

    column: int
    direction: str
    alternate: bool = False
    version: Optional[Hashable] = None


def to_number(value: str) -> float:
    """Numeric coercion with the rules of a browser's unary plus.

    Blank text is zero; anything that is not a complete ASCII decimal, hex,
    octal or binary literal is NaN.
    """
    text = value.strip()
    if not text:
        return 0.0
    if not text.isascii():
        return math.nan
    if text in _INFINITIES:
        return _INFINITIES[text]
    lowered = text.lower()
    if lowered.startswith(("0x", "0o", "0b")):
        try:
            return float(int(text, 0))
        except ValueError:
            return math.nan
    if "_" in text or "inf" in lowered or "nan" in lowered:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def collate(x: str, y: str) -> int:
    """Case-insensitive text order; on a case-only tie lowercase sorts first."""
    left = (x.casefold(), x.swapcase())
    right = (y.casefold(), y.swapcase())
    return (left > right) - (left < right)


def _cell_value(cell: Cell, alternate: bool) -> str:
    value = cell.sort_alt if alternate else cell.sort
    return value if value is not None else cell.text.strip()


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class SortEngine:
    def __init__(self, spec: TableSpec, state: Optional[SortState] = None):
        width = len(spec.columns)
        for position, column in enumerate(spec.columns):
            for index in (column.sort_col, column.tie_break):
                if index is not None and not 0 <= index < width:
                    raise ValueError(f"Column {position} refers to column {index} outside the table")
        self.spec = spec
        self.state = state if state is not None else SortState()

    def _column(self, position: int):
        if not 0 <= position < len(self.spec.columns):
            raise IndexError(f"Sort column {position} is outside the table")
        return self.spec.columns[position]

    def resolve_column(self, position: int) -> int:
        return self._column(position).sort_col or position

    def next_direction(self, position: int) -> str:
        current = self.state.get(position)
        if current == DESCENDING or (self.spec.ascending_by_default and current != ASCENDING):
            return ASCENDING
        return DESCENDING

    def toggle(self, position: int) -> Optional[str]:
        """Advance the indicators for a header activation; None when the column is not sortable."""
        if self._column(position).no_sort:
            return None
        direction = self.next_direction(position)
        self.state.activate(position, direction)
        return direction

    def apply(self, table: TableModel, position: int, direction: str, alternate: bool = False) -> None:
        """Sort every segment of `table` in place on one header, in a given direction."""
        column = self._column(position)
        index = self.resolve_column(position)
        tie_break = column.tie_break
        reverse = direction == ASCENDING
        null_last = self.spec.null_last

        def compare(a: List[Cell], b: List[Cell], i: int) -> float:
            # Operands are read swapped; the direction toggle compensates
            x = _cell_value(b[i], alternate)
            y = _cell_value(a[i], alternate)

            if null_last:
                if x == "" and y != "":
                    return -1
                if y == "" and x != "":
                    return 1

            num = to_number(x) - to_number(y)
            result = collate(x, y) if math.isnan(num) else num
            return -result if reverse else result

        for segment in table.segments:
            cells: Dict[int, List[Cell]] = {id(row): row.cells() for row in segment}

            def by_column(a: Row, b: Row) -> float:
                ca, cb = cells[id(a)], cells[id(b)]
                result = compare(ca, cb, index)
                if result == 0 and tie_break is not None:
                    return _sign(compare(ca, cb, tie_break))
                return _sign(result)

            segment.sort(key=cmp_to_key(by_column))

    def activate(self, table: TableModel, command: SortCommand) -> Optional[str]:
        """Toggle the activated header and sort `table` on it.

        Returns the new direction, or None when the column is not sortable.
        """
        direction = self.toggle(command.column)
        if direction is not None:
            self.apply(table, command.column, direction, command.alternate)
        return direction


def sort_by_seconds(table: TableModel, column: int, ascending: bool = True) -> None:
    """Order each segment by the stored seconds of a counter column."""

    def seconds(row: Row) -> int:
        counter = row.counter_at(column)
        return counter.seconds if counter is not None else 0

    for segment in table.segments:
        segment.sort(key=seconds, reverse=not ascending)
