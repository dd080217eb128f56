"""Job queues: asyncio timers for the service, a virtual-clock heap for tests."""

import asyncio
import heapq
import itertools
from datetime import datetime, timedelta
from typing import Any

from statusflow.infrastructure.scheduling.jobs import ScheduledJob
from statusflow.shared.telemetry.logging import get_logger
from statusflow.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class AsyncioJobQueue:
    """Runs each job as an asyncio task after its delay (loop.call_later)."""

    def __init__(self) -> None:
        self._runner: Any = None
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        self._seq = itertools.count()
        self._closed = False

    def bind(self, runner: Any) -> None:
        self._runner = runner

    def clock(self) -> datetime:
        return utc_now()

    def submit(self, job: ScheduledJob) -> None:
        if self._closed:
            logger.warning("Job queue closed; dropping job %s", job.name.value)
            return
        loop = asyncio.get_running_loop()
        key = next(self._seq)
        self._timers[key] = loop.call_later(job.delay_ms / 1000, self._start, key, job)

    def _start(self, key: int, job: ScheduledJob) -> None:
        self._timers.pop(key, None)
        task = asyncio.create_task(self._runner.run(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def in_flight(self) -> int:
        return len(self._timers) + len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel pending timers and running jobs, then wait for them to finish."""
        self._closed = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Job queue shut down (%d running jobs cancelled)", len(tasks))


class InMemoryJobQueue:
    """Deterministic queue: jobs run only when the test drains them.

    Jobs are ordered by virtual run time, then submission order. The
    virtual clock starts at construction time and only moves forward when
    run_until_idle reaches a job scheduled later than the current time.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._runner: Any = None
        self._heap: list[tuple[int, int, ScheduledJob]] = []
        self._seq = itertools.count()
        self._epoch = start or utc_now()
        self.now_ms = 0
        self.history: list[ScheduledJob] = []

    def bind(self, runner: Any) -> None:
        self._runner = runner

    def clock(self) -> datetime:
        return self._epoch + timedelta(milliseconds=self.now_ms)

    def advance(self, milliseconds: int) -> None:
        self.now_ms += milliseconds

    def submit(self, job: ScheduledJob) -> None:
        heapq.heappush(self._heap, (self.now_ms + job.delay_ms, next(self._seq), job))

    def pending(self) -> list[ScheduledJob]:
        return [job for _, _, job in sorted(self._heap)]

    async def run_until_idle(self, max_jobs: int = 10_000) -> int:
        """Run jobs (including ones they schedule) until none remain; return count run."""
        ran = 0
        while self._heap and ran < max_jobs:
            run_at, _, job = heapq.heappop(self._heap)
            self.now_ms = max(self.now_ms, run_at)
            self.history.append(job)
            await self._runner.run(job)
            ran += 1
        return ran
