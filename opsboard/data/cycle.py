"""
One refresh cycle of the board: state ownership and orchestration.

A cycle resolves the time reference, loads the lookup maps, enriches every
feed item into the table and, once the first batch of chains drains, starts
the live clocks and the reload countdown exactly once.

The rows are shared by every viewer. Filters and header sorts belong to a
viewer and are applied to a copy of the rows when a snapshot is taken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from opsboard.config import BOARD_TABLE, BoardSettings, TableSpec
from opsboard.data.client import ApiClient, FetchError
from opsboard.data.clock import LiveClockTicker, ReloadCallback, ReloadScheduler
from opsboard.data.enrichment import RecordAggregator
from opsboard.data.filters import DEFAULT_FILTERS, BoardFilters, apply_board_filters
from opsboard.data.models import DUE_COLUMN, Row, SourceCategory, Tier
from opsboard.data.reference import load_reference_maps
from opsboard.data.sorting import SortEngine, ViewSort, sort_by_seconds
from opsboard.data.table import CountLabel, TableModel
from opsboard.data.time_source import resolve_cycle_instant

logger = logging.getLogger(__name__)

STATUS_STARTING = "starting"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_FAILED = "failed"

# (cycle number, rows added so far)
TableVersion = Tuple[int, int]


@dataclass(frozen=True)
class SnapshotRow:
    cells: List[str]
    elapsed_tier: Tier
    due_tier: Tier


@dataclass(frozen=True)
class BoardSnapshot:
    rows: List[SnapshotRow] = field(default_factory=list)
    count_label: str = "Reports (0)"
    reload_label: str = ""
    status: str = STATUS_STARTING
    error: Optional[str] = None
    sort_column: Optional[int] = None
    sort_direction: Optional[str] = None
    products: List[str] = field(default_factory=list)
    version: TableVersion = (0, 0)


def _snapshot_row(row: Row) -> SnapshotRow:
    return SnapshotRow(
        cells=[cell.text for cell in row.cells()],
        elapsed_tier=row.elapsed.tier if row.elapsed else Tier.NONE,
        due_tier=row.due.tier if row.due else Tier.NONE,
    )


class CycleState:
    """Everything one cycle owns, including the pending-chain counter and
    the start guards of the clocks and the reload countdown."""

    def __init__(
        self,
        settings: BoardSettings,
        on_reload: Optional[ReloadCallback] = None,
        table_spec: TableSpec = BOARD_TABLE,
        cycle: int = 0,
    ):
        self.settings = settings
        self.cycle = cycle
        self.table = TableModel()
        self.sorter = SortEngine(table_spec)
        self.pending = 0
        self.received = 0
        self.rows_added = 0
        self.status = STATUS_STARTING
        self.error: Optional[str] = None
        self.ticker = LiveClockTicker(lambda: list(self.table.rows()), settings)
        self.scheduler = ReloadScheduler(
            settings.reload_seconds,
            on_reload or (lambda: None),
            interval=settings.tick_interval,
        )
        self.clocks_started = False
        self.reload_started = False

    @property
    def version(self) -> TableVersion:
        return (self.cycle, self.rows_added)

    def chain_started(self) -> None:
        self.pending += 1
        self.received += 1

    def add_row(self, row: Row) -> None:
        self.table.append(row)
        self.rows_added += 1
        sort_by_seconds(self.table, DUE_COLUMN, ascending=True)

    def chain_finished(self) -> None:
        self.pending = max(0, self.pending - 1)
        if self.pending == 0:
            self.on_drained()

    def on_drained(self) -> None:
        self.status = STATUS_READY
        if not self.clocks_started:
            self.clocks_started = True
            self.ticker.start()
        if not self.reload_started:
            self.reload_started = True
            self.scheduler.start()
            logger.info("Cycle drained with %d rows; reload in %ds", len(self.table), self.settings.reload_seconds)

    def fail(self, exc: Exception) -> None:
        self.status = STATUS_FAILED
        self.error = str(exc)

    def stop(self) -> None:
        self.ticker.stop()
        self.scheduler.stop()

    def view(
        self, filters: BoardFilters = DEFAULT_FILTERS, sort: Optional[ViewSort] = None
    ) -> Tuple[TableModel, CountLabel, Optional[ViewSort]]:
        """One viewer's copy of the table with its filters and, if still current, its sort.

        A sort taken on an older version is dropped: every insertion re-sorts
        the shared rows by due time. The count label gets the received count
        and then the visible count, as on each insertion.
        """
        view = self.table.copy()
        label = CountLabel()
        label.write(self.received)
        apply_board_filters(view, filters, label)
        applied = sort if sort is not None and sort.version == self.version else None
        if applied is not None:
            self.sorter.apply(view, applied.column, applied.direction, applied.alternate)
        return view, label, applied

    def snapshot(self, filters: BoardFilters = DEFAULT_FILTERS, sort: Optional[ViewSort] = None) -> BoardSnapshot:
        view, label, applied = self.view(filters, sort)
        products = sorted({row.product_label for row in self.table.rows() if row.product_label})
        return BoardSnapshot(
            rows=[_snapshot_row(row) for row in view.visible_rows()],
            count_label=label.text,
            reload_label=self.scheduler.label,
            status=self.status,
            error=self.error,
            sort_column=applied.column if applied else None,
            sort_direction=applied.direction if applied else None,
            products=products,
            version=self.version,
        )


async def run_cycle(client: ApiClient, state: CycleState) -> None:
    """Fill `state` for one cycle.

    Time and lookup-map failures are recorded on the state and re-raised;
    feed and chain failures are isolated inside the aggregator.
    """
    settings = state.settings
    state.status = STATUS_LOADING
    try:
        instant = await resolve_cycle_instant(client, settings)
        refs = await load_reference_maps(client)
    except FetchError as exc:
        state.fail(exc)
        raise

    logger.info("Cycle instant %s; %d teams, %d locations", instant, len(refs.teams), len(refs.locations))
    aggregator = RecordAggregator(client, settings, refs, instant, state)
    await aggregator.run(list(SourceCategory))

    # Feeds that produced no chains never reach the drain hook
    if state.pending == 0 and not state.reload_started:
        state.on_drained()
