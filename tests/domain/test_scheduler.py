from __future__ import annotations

import asyncio
import contextlib

from deppy.domain.model import RunState
from deppy.domain.scheduler import UpdateScheduler, UpdateTriggers


def test_idle_request_runs_immediately() -> None:
    runs: list[int] = []

    async def body() -> None:
        runs.append(1)

    scheduler = UpdateScheduler(body)

    assert asyncio.run(scheduler.request_run()) is True
    assert runs == [1]
    assert scheduler.completed_runs == 1
    assert scheduler.state is RunState.IDLE


def test_requests_during_a_run_coalesce_into_one_follow_up() -> None:
    async def scenario() -> tuple[int, list[bool]]:
        release = asyncio.Event()
        started = asyncio.Event()
        runs = 0

        async def body() -> None:
            nonlocal runs
            runs += 1
            started.set()
            if runs == 1:
                await release.wait()

        scheduler = UpdateScheduler(body)
        first = asyncio.create_task(scheduler.request_run())
        await started.wait()
        assert scheduler.state is RunState.RUNNING

        coalesced = [await scheduler.request_run() for _ in range(5)]
        assert scheduler.state is RunState.RUNNING_WITH_PENDING_RERUN

        release.set()
        assert await first is True
        assert scheduler.state is RunState.IDLE
        return runs, coalesced

    runs, coalesced = asyncio.run(scenario())

    assert runs == 2
    assert coalesced == [False] * 5


def test_failed_run_still_honours_pending_rerun() -> None:
    async def scenario() -> UpdateScheduler:
        attempts: list[int] = []
        scheduler: UpdateScheduler

        async def body() -> None:
            attempts.append(len(attempts))
            if len(attempts) == 1:
                await scheduler.request_run()
                raise RuntimeError("GitHub unavailable")

        scheduler = UpdateScheduler(body)
        await scheduler.request_run()
        assert attempts == [0, 1]
        return scheduler

    scheduler = asyncio.run(scenario())

    assert scheduler.completed_runs == 2
    assert scheduler.state is RunState.IDLE


def test_cancelled_run_returns_to_idle() -> None:
    async def scenario() -> UpdateScheduler:
        started = asyncio.Event()

        async def body() -> None:
            started.set()
            await asyncio.sleep(3600)

        scheduler = UpdateScheduler(body)
        task = asyncio.create_task(scheduler.request_run())
        await started.wait()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        return scheduler

    assert asyncio.run(scenario()).state is RunState.IDLE


def _counting_triggers(debounce_seconds: float) -> tuple[UpdateTriggers, list[int]]:
    runs: list[int] = []

    async def body() -> None:
        runs.append(1)

    triggers = UpdateTriggers(
        scheduler=UpdateScheduler(body),
        main_branch="master",
        debounce_seconds=debounce_seconds,
    )
    return triggers, runs


def test_push_burst_on_main_branch_triggers_one_run() -> None:
    triggers, runs = _counting_triggers(0.05)

    async def scenario() -> list[bool]:
        accepted = [triggers.on_push("refs/heads/master") for _ in range(4)]
        await triggers.drain()
        return accepted

    assert asyncio.run(scenario()) == [True] * 4
    assert runs == [1]


def test_push_to_other_branch_is_ignored() -> None:
    triggers, runs = _counting_triggers(0.0)

    async def scenario() -> bool:
        accepted = triggers.on_push("refs/heads/dependencies-update")
        await triggers.drain()
        return accepted

    assert asyncio.run(scenario()) is False
    assert runs == []


def test_periodic_trigger_repeats_until_cancelled() -> None:
    triggers, runs = _counting_triggers(0.0)

    async def scenario() -> None:
        task = asyncio.create_task(triggers.run_periodically(0.01))
        await asyncio.sleep(0.1)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert len(runs) >= 2
