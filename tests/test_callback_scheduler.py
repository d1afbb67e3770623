"""Tests for the fire-once callback scheduler."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from echoaid.services.callback_scheduler import CallbackScheduler

from conftest import FIXED_NOW


async def _drain() -> None:
    # Zero-delay tasks need a couple of loop iterations to finish.
    for _ in range(5):
        await asyncio.sleep(0)


class TestCallbackScheduler:
    async def test_past_deadline_runs_immediately(self) -> None:
        scheduler = CallbackScheduler(clock=lambda: FIXED_NOW)
        ran: list[str] = []

        async def job() -> None:
            ran.append("done")

        entry = scheduler.schedule(FIXED_NOW - timedelta(minutes=1), job, name="callback")
        assert entry.name == "callback"
        assert scheduler.pending == 1

        await _drain()

        assert ran == ["done"]
        assert scheduler.stats == {"pending": 0, "completed": 1, "failed": 0}

    async def test_job_runs_exactly_once(self) -> None:
        scheduler = CallbackScheduler(clock=lambda: FIXED_NOW)
        calls = 0

        async def job() -> None:
            nonlocal calls
            calls += 1

        scheduler.schedule(FIXED_NOW, job)
        await _drain()
        await _drain()
        assert calls == 1

    async def test_failure_is_counted_not_raised(self) -> None:
        scheduler = CallbackScheduler(clock=lambda: FIXED_NOW)

        async def job() -> None:
            raise RuntimeError("carrier down")

        scheduler.schedule(FIXED_NOW, job)
        await _drain()

        assert scheduler.stats["failed"] == 1
        assert scheduler.stats["completed"] == 0

    async def test_stop_cancels_pending(self) -> None:
        scheduler = CallbackScheduler(clock=lambda: FIXED_NOW)
        ran: list[int] = []

        async def job() -> None:
            ran.append(1)

        scheduler.schedule(FIXED_NOW + timedelta(hours=2), job)
        scheduler.schedule(FIXED_NOW + timedelta(hours=4), job)
        assert scheduler.pending == 2

        await scheduler.stop()
        await _drain()

        assert scheduler.pending == 0
        assert ran == [], "cancelled callbacks must never fire"

    async def test_job_ids_are_unique(self) -> None:
        scheduler = CallbackScheduler(clock=lambda: FIXED_NOW)

        async def job() -> None:
            return None

        first = scheduler.schedule(FIXED_NOW + timedelta(hours=1), job)
        second = scheduler.schedule(FIXED_NOW + timedelta(hours=1), job)
        assert first.job_id != second.job_id
        await scheduler.stop()
