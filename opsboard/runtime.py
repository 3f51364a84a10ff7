"""
Background event loop hosting the board cycles for the Streamlit process.

All cycle state is touched only from the loop thread; the UI thread reads
snapshots and issues commands through `run_coroutine_threadsafe`. One runtime
serves every browser session, so it keeps no viewer state: each snapshot
request carries the caller's filters and sort.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional

from opsboard.config import BoardSettings
from opsboard.data.client import ApiClient, FetchError
from opsboard.data.cycle import BoardSnapshot, CycleState, run_cycle
from opsboard.data.filters import DEFAULT_FILTERS, BoardFilters
from opsboard.data.sorting import ViewSort

logger = logging.getLogger(__name__)

CALL_TIMEOUT = 5.0


class BoardRuntime:
    def __init__(
        self,
        settings: BoardSettings,
        client_factory: Optional[Callable[[], ApiClient]] = None,
    ):
        self.settings = settings
        self._client_factory = client_factory or (lambda: ApiClient(settings))
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="opsboard-loop", daemon=True)
        self._state: Optional[CycleState] = None
        self._cycle_task: Optional[asyncio.Task] = None
        self._restart_task: Optional[asyncio.Task] = None
        self.cycles = 0

    def start(self) -> None:
        if self._thread.is_alive():
            return
        self._thread.start()
        self._call(self._restart())

    def shutdown(self) -> None:
        if not self._thread.is_alive():
            return
        self._call(self._stop_cycle())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=CALL_TIMEOUT)

    def snapshot(self, filters: BoardFilters = DEFAULT_FILTERS, sort: Optional[ViewSort] = None) -> BoardSnapshot:
        return self._call(self._snapshot(filters, sort))

    def reload_now(self) -> None:
        self._call(self._restart())

    def _call(self, coro):
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout=CALL_TIMEOUT)

    async def _snapshot(self, filters: BoardFilters, sort: Optional[ViewSort]) -> BoardSnapshot:
        if self._state is None:
            return BoardSnapshot()
        return self._state.snapshot(filters, sort)

    async def _stop_cycle(self) -> None:
        if self._state is not None:
            self._state.stop()
        if self._cycle_task is not None:
            self._cycle_task.cancel()

    async def _restart(self) -> None:
        await self._stop_cycle()
        self.cycles += 1
        state = CycleState(self.settings, on_reload=self._schedule_restart, cycle=self.cycles)
        self._state = state
        self._cycle_task = asyncio.create_task(self._run(state))

    def _schedule_restart(self) -> None:
        # Runs inside the reload countdown task, which the restart cancels
        self._restart_task = asyncio.get_running_loop().create_task(self._restart())

    async def _run(self, state: CycleState) -> None:
        async with self._client_factory() as client:
            try:
                await run_cycle(client, state)
            except FetchError:
                logger.exception("Cycle %d aborted", self.cycles)
