"""Fire-once deferred execution for scheduled callbacks.

Each scheduled callback is an ``asyncio`` task that sleeps until its
deadline and then runs its job exactly once.  There is no retry, no
de-duplication and no cancellation of individual callbacks; pending
tasks are only cancelled when the application shuts down via
:meth:`CallbackScheduler.stop`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)

Job = Callable[[], Awaitable[object]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class ScheduledCallback:
    job_id: str
    name: str
    run_at: datetime


class CallbackScheduler:
    """Runs jobs at absolute wall-clock deadlines.

    Parameters
    ----------
    clock:
        Source of "now"; injectable so tests can pin time.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._tasks: dict[str, asyncio.Task] = {}  # type: ignore[type-arg]
        self._completed = 0
        self._failed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def stats(self) -> dict[str, int]:
        return {"pending": self.pending, "completed": self._completed, "failed": self._failed}

    def schedule(self, run_at: datetime, job: Job, *, name: str = "callback") -> ScheduledCallback:
        """Queue *job* to run once at *run_at*; past deadlines run immediately."""
        entry = ScheduledCallback(job_id=uuid4().hex, name=name, run_at=run_at)
        delay = max(0.0, (run_at - self._clock()).total_seconds())

        task = asyncio.create_task(self._run(entry, delay, job), name=f"{name}:{entry.job_id}")
        self._tasks[entry.job_id] = task
        task.add_done_callback(lambda _t, job_id=entry.job_id: self._tasks.pop(job_id, None))

        logger.info(
            "scheduler.callback_scheduled",
            job_id=entry.job_id,
            name=name,
            run_at=run_at.isoformat(),
            delay_seconds=round(delay, 1),
        )
        return entry

    async def _run(self, entry: ScheduledCallback, delay: float, job: Job) -> None:
        await asyncio.sleep(delay)
        await self._safe_run(entry, job)

    async def _safe_run(self, entry: ScheduledCallback, job: Job) -> None:
        """Execute *job*, logging rather than propagating failures."""
        logger.info("scheduler.callback_started", job_id=entry.job_id, name=entry.name)
        try:
            await job()
        except Exception:
            self._failed += 1
            logger.error("scheduler.callback_failed", job_id=entry.job_id, name=entry.name, exc_info=True)
        else:
            self._completed += 1
            logger.info("scheduler.callback_completed", job_id=entry.job_id, name=entry.name)

    async def stop(self) -> None:
        """Cancel every pending callback (application shutdown)."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler.stopped", cancelled=len(tasks))
