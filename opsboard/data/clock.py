"""
Live clocks: duration tiering, the per-second elapsed/due ticker and the
reload countdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from opsboard.config import BoardSettings
from opsboard.data.models import Counter, Row, Tier
from opsboard.utils.formatting import format_clock, format_countdown, format_due

logger = logging.getLogger(__name__)

ReloadCallback = Callable[[], Union[None, Awaitable[None]]]


def elapsed_tier(seconds: float, is_training: bool, settings: BoardSettings) -> Tier:
    if seconds >= settings.elapsed_alert_seconds and not is_training:
        return Tier.ALERT
    return Tier.NONE


def due_tier(seconds: int, settings: BoardSettings) -> Tier:
    # Lower bounds are inclusive of the next, less urgent tier
    if seconds < 0:
        return Tier.ALERT
    if seconds < settings.due_alert_seconds:
        return Tier.ALERT
    if seconds < settings.due_second_seconds:
        return Tier.SECOND
    if seconds < settings.due_third_seconds:
        return Tier.THIRD
    return Tier.NONE


def due_counter(seconds: int, settings: BoardSettings) -> Counter:
    return Counter(seconds=seconds, text=format_due(seconds), tier=due_tier(seconds, settings))


class LiveClockTicker:
    """Advances elapsed counters and retreats due counters once per interval."""

    def __init__(self, rows: Callable[[], Iterable[Row]], settings: BoardSettings):
        self._rows = rows
        self._settings = settings
        self._tasks: List[asyncio.Task] = []

    def tick_elapsed(self, rows: Iterable[Row]) -> None:
        for row in rows:
            counter = row.elapsed
            if counter is None:
                continue
            counter.seconds += 1
            counter.text = format_clock(counter.seconds)
            counter.tier = elapsed_tier(counter.seconds, row.is_training, self._settings)

    def tick_due(self, rows: Iterable[Row]) -> None:
        for row in rows:
            counter = row.due
            if counter is None:
                continue
            counter.seconds -= 1
            counter.text = format_due(counter.seconds)
            counter.tier = due_tier(counter.seconds, self._settings)

    async def _every_interval(self, step: Callable[[Iterable[Row]], None]) -> None:
        while True:
            await asyncio.sleep(self._settings.tick_interval)
            step(self._rows())

    def start(self) -> List[asyncio.Task]:
        if not self._tasks:
            self._tasks = [
                asyncio.create_task(self._every_interval(self.tick_elapsed)),
                asyncio.create_task(self._every_interval(self.tick_due)),
            ]
        return self._tasks

    def stop(self) -> None:
        for task in self._tasks:
            task.cancel()


class ReloadScheduler:
    """Counts down the reload horizon and fires the reload callback once at zero."""

    def __init__(self, seconds: int, on_reload: ReloadCallback, interval: float = 1.0):
        self.remaining = seconds
        self._on_reload = on_reload
        self._interval = interval
        self._fired = False
        self._task: Optional[asyncio.Task] = None
        self.label = ""

    @property
    def fired(self) -> bool:
        return self._fired

    def tick(self) -> bool:
        """Advance one second; returns True on the tick that triggers the reload."""
        if self._fired:
            return False
        self.remaining -= 1
        self.label = f"Auto Reload in: {format_countdown(self.remaining)}"
        if self.remaining <= 0:
            self._fired = True
            return True
        return False

    async def run(self) -> None:
        while not self._fired:
            await asyncio.sleep(self._interval)
            if self.tick():
                logger.info("Reload horizon reached; restarting cycle")
                result = self._on_reload()
                if asyncio.iscoroutine(result):
                    await result

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run())
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
