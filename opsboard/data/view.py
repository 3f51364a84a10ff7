"""
Per-viewer board state: the filters and sort indicators of one browser
session. The rows themselves are shared; see `CycleState.snapshot`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Optional

from opsboard.config import BOARD_TABLE, TableSpec
from opsboard.data.filters import DEFAULT_FILTERS, BoardFilters
from opsboard.data.sorting import SortCommand, SortEngine, ViewSort
from opsboard.data.table import SortState


@dataclass
class BoardView:
    filters: BoardFilters = DEFAULT_FILTERS
    indicators: SortState = field(default_factory=SortState)
    sort: Optional[ViewSort] = None
    cycle: Optional[int] = None

    def sync(self, version: Hashable) -> None:
        """Forget the sort of a previous cycle; filters are kept across reloads."""
        cycle = version[0]
        if self.cycle is not None and cycle != self.cycle:
            self.indicators = SortState()
            self.sort = None
        self.cycle = cycle

    def request_sort(
        self, command: SortCommand, version: Hashable, spec: TableSpec = BOARD_TABLE
    ) -> Optional[str]:
        """Toggle this viewer's indicators and remember the sort for `version` of the table."""
        direction = SortEngine(spec, self.indicators).toggle(command.column)
        if direction is not None:
            self.sort = ViewSort(command.column, direction, command.alternate, version)
        return direction
