"""
Per-item enrichment: each raw feed item is decorated with its report, task
state, user and measurement items before it becomes a board row.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

import pandas as pd

from opsboard.config import BoardSettings
from opsboard.data.client import ApiClient, FetchError
from opsboard.data.clock import due_counter, elapsed_tier
from opsboard.data.models import (
    Counter,
    MeasurementItems,
    RawItem,
    ReferenceMaps,
    Report,
    Row,
    SourceCategory,
    TaskState,
    UserRecord,
    parse_instant,
)
from opsboard.utils.formatting import format_elapsed_minutes

logger = logging.getLogger(__name__)

WHITESPACE = re.compile(r"\s+")
HIPSTER_LABEL = "Hipster"
PM_MARKER = " [PM]"


class RowSink(Protocol):
    def chain_started(self) -> None: ...

    def add_row(self, row: Row) -> None: ...

    def chain_finished(self) -> None: ...


@dataclass(frozen=True)
class EnrichmentResult:
    report: Report
    task_state: TaskState
    user: UserRecord
    items: MeasurementItems


def _expect_object(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise FetchError(what, "expected a JSON object")
    return payload


def product_label(item: RawItem, report: Report) -> str:
    return HIPSTER_LABEL if report.is_hipster_job else item.product_name


def items_text(items: MeasurementItems) -> str:
    return "  ".join("*" + WHITESPACE.sub("", name) for name in items.names)


def _optional_instant(value: Any, timezone: str) -> Optional[pd.Timestamp]:
    if not value:
        return None
    try:
        return parse_instant(value, timezone)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparsable timestamp %r", value)
        return None


def _minutes_between(start: pd.Timestamp, end: pd.Timestamp) -> float:
    return (end - start).total_seconds() * 1000 / 60000


def elapsed_counter(
    instant: pd.Timestamp,
    state_time: Optional[pd.Timestamp],
    is_training: bool,
    settings: BoardSettings,
) -> Optional[Counter]:
    if state_time is None:
        return None
    minutes = _minutes_between(state_time, instant)
    return Counter(
        seconds=math.floor(minutes * 60),
        text=format_elapsed_minutes(minutes),
        tier=elapsed_tier(minutes * 60, is_training, settings),
    )


def due_counter_at(
    instant: pd.Timestamp,
    due_date: Optional[pd.Timestamp],
    settings: BoardSettings,
) -> Optional[Counter]:
    if due_date is None:
        return None
    minutes = _minutes_between(instant, due_date)
    return due_counter(math.floor(minutes * 60), settings)


def build_row(
    item: RawItem,
    category: SourceCategory,
    result: EnrichmentResult,
    refs: ReferenceMaps,
    instant: pd.Timestamp,
    settings: BoardSettings,
) -> Row:
    pm_text = PM_MARKER if result.report.pm_report_id else ""
    state_time = _optional_instant(result.task_state.state_time, settings.timezone)
    due_date = _optional_instant(item.due_date, settings.timezone)
    return Row(
        category=category,
        report_id=item.report_id,
        user_name=result.user.user_name,
        tech_username=result.user.tech_username,
        team_name=refs.team_name(result.user.team_id),
        location_name=refs.location_name(result.user.location_id),
        product_label=product_label(item, result.report),
        items_text=items_text(result.items) + pm_text,
        elapsed=elapsed_counter(instant, state_time, category.is_training, settings),
        due=due_counter_at(instant, due_date, settings),
    )


async def enrich_item(client: ApiClient, item: RawItem, category: SourceCategory) -> EnrichmentResult:
    """Run the four dependent lookups for one item, in order."""
    report = Report.from_payload(_expect_object(await client.report(item.report_id), "Report"))
    task_state = TaskState.from_payload(
        _expect_object(await client.task_state(item.task_state_id), "TaskState")
    )
    user_id = task_state.preferred_user_id if category.is_ready_to_measure else task_state.user_id
    user = UserRecord.first_of(await client.users(user_id))
    items = MeasurementItems.from_payload(
        _expect_object(await client.measurement_items(item.report_id), "MeasurementItems")
    )
    return EnrichmentResult(report=report, task_state=task_state, user=user, items=items)


class RecordAggregator:
    """Fans out one enrichment chain per feed item and hands finished rows to a sink.

    A failed feed contributes no rows; a failed chain drops only its own row.
    The sink is told when each chain starts and finishes, success or not.
    """

    def __init__(
        self,
        client: ApiClient,
        settings: BoardSettings,
        refs: ReferenceMaps,
        instant: pd.Timestamp,
        sink: RowSink,
    ):
        self._client = client
        self._settings = settings
        self._refs = refs
        self._instant = instant
        self._sink = sink
        self._limit = (
            asyncio.Semaphore(settings.max_concurrency) if settings.max_concurrency else None
        )

    async def run(self, categories: List[SourceCategory]) -> None:
        await asyncio.gather(*(self.run_feed(category) for category in categories))

    async def run_feed(self, category: SourceCategory) -> int:
        """Fetch one category feed and enrich its items; returns the number of chains started."""
        try:
            payload = await self._client.feed(category)
        except FetchError as exc:
            logger.warning("Feed %s failed: %s", category.name, exc)
            return 0
        if not isinstance(payload, list):
            logger.warning("Feed %s returned %s instead of a list", category.name, type(payload).__name__)
            return 0

        chains = []
        for entry in payload:
            self._sink.chain_started()
            chains.append(asyncio.create_task(self._run_chain(entry, category)))
        logger.info("Feed %s: %d items", category.name, len(chains))
        await asyncio.gather(*chains)
        return len(chains)

    async def _run_chain(self, entry: Any, category: SourceCategory) -> None:
        try:
            if self._limit is not None:
                async with self._limit:
                    row = await self._enrich(entry, category)
            else:
                row = await self._enrich(entry, category)
            self._sink.add_row(row)
        except (FetchError, KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Dropping %s item %r: %s", category.name, _report_ref(entry), exc)
        finally:
            self._sink.chain_finished()

    async def _enrich(self, entry: Any, category: SourceCategory) -> Row:
        item = RawItem.from_payload(entry)
        result = await enrich_item(self._client, item, category)
        return build_row(item, category, result, self._refs, self._instant, self._settings)


def _report_ref(entry: Any) -> Any:
    return entry.get("reportID") if isinstance(entry, dict) else entry
