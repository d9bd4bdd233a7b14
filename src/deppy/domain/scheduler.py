"""Single-flight scheduling of update runs and the triggers that request them."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from deppy.domain.model import RunState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

type RunBody = Callable[[], Awaitable[object]]


class UpdateScheduler:
    """Run at most one update at a time, coalescing requests made meanwhile.

    ``request_run`` called while idle executes the run body (and any follow-up
    run) before returning. Called while a run is active it only marks a rerun as
    pending and returns at once; however many such calls arrive, they produce a
    single follow-up run.
    """

    def __init__(self, run_body: RunBody) -> None:
        self._run_body = run_body
        self._state = RunState.IDLE
        self.completed_runs = 0

    @property
    def state(self) -> RunState:
        return self._state

    async def request_run(self) -> bool:
        """Return ``True`` if this call performed the run, ``False`` if it was coalesced."""

        if self._state is not RunState.IDLE:
            self._state = RunState.RUNNING_WITH_PENDING_RERUN
            log.info("Update is already in progress, scheduled another iteration")
            return False

        self._state = RunState.RUNNING
        try:
            while True:
                await self._execute_once()
                if self._state is not RunState.RUNNING_WITH_PENDING_RERUN:
                    break
                log.info("Another update was requested during the run, starting a new cycle")
                self._state = RunState.RUNNING
        finally:
            self._state = RunState.IDLE
        return True

    async def _execute_once(self) -> None:
        log.info("Starting update")
        try:
            await self._run_body()
        except Exception:
            log.exception("Failed to execute update")
        else:
            log.info("Update finished")
        self.completed_runs += 1


@dataclass(slots=True)
class UpdateTriggers:
    """Recurring and push-driven entry points into the scheduler."""

    scheduler: UpdateScheduler
    main_branch: str
    debounce_seconds: float
    _debouncing: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _firing: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    async def run_periodically(self, interval_seconds: float) -> None:
        """Request a run now and then every ``interval_seconds``, until cancelled."""

        while True:
            await self.scheduler.request_run()
            log.info("Next scheduled update in %.0f seconds", interval_seconds)
            await asyncio.sleep(interval_seconds)

    def on_push(self, ref: str) -> bool:
        """Debounce a push notification; returns whether the ref is relevant.

        Each relevant push restarts the timer, so a burst settles into one run.
        A timer that already fired is left alone: its run is in the scheduler's
        hands. Must be called from within a running event loop.
        """

        log.info("Received push event on %s", ref)
        if ref != f"refs/heads/{self.main_branch}":
            return False
        if self._debouncing is not None:
            self._debouncing.cancel()
        self._debouncing = asyncio.get_running_loop().create_task(self._after_debounce())
        return True

    async def drain(self) -> None:
        """Wait for pending and firing push timers; used on shutdown and in tests."""

        tasks = [*self._firing]
        if self._debouncing is not None:
            tasks.append(self._debouncing)
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _after_debounce(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        task = asyncio.current_task()
        if task is not None and self._debouncing is task:
            self._debouncing = None
            self._firing.add(task)
            task.add_done_callback(self._firing.discard)
        await self.scheduler.request_run()
