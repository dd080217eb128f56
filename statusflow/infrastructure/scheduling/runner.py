"""JobRunner: runs one job per transaction and releases its successors on commit."""

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from statusflow.core.config import Settings
from statusflow.infrastructure.scheduling.jobs import (
    BufferedScheduler,
    GiveUpHandler,
    JobContext,
    JobHandler,
    JobName,
    JobQueue,
    ScheduledJob,
)
from statusflow.shared.telemetry.logging import get_logger
from statusflow.shared.telemetry.tracing import TracedOperation

logger = get_logger(__name__)


class JobRunner:
    """Owns the session factory, the queue, and the job name -> handler table.

    A job that raises is rolled back and resubmitted with a growing delay
    until settings.job_max_attempts is reached; then its give-up handler
    (if any) runs in a fresh transaction. On SQLite, jobs run one at a
    time.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queue: JobQueue,
        settings: Settings,
        handlers: Mapping[JobName, JobHandler],
        give_up_handlers: Mapping[JobName, GiveUpHandler] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.queue = queue
        self.settings = settings
        self.handlers = dict(handlers)
        self.give_up_handlers = dict(give_up_handlers or {})
        # SQLite has a single writer.
        self._serial = asyncio.Lock() if settings.is_sqlite else None
        queue.bind(self)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[JobContext]:
        """Session + transaction; buffered jobs are submitted only after commit."""
        scheduler = BufferedScheduler()
        async with self.session_factory() as session:
            async with session.begin():
                yield JobContext(
                    db=session,
                    scheduler=scheduler,
                    settings=self.settings,
                    clock=self.queue.clock,
                )
        for job in scheduler.drain():
            self.queue.submit(job)

    def enqueue(self, name: JobName, delay_ms: int = 0, **kwargs: Any) -> None:
        """Submit a job directly (outside any transaction), e.g. at startup."""
        self.queue.submit(ScheduledJob(name=name, kwargs=kwargs, delay_ms=delay_ms))

    async def run(self, job: ScheduledJob) -> Any:
        """Run a job in its own transaction. Failures are rolled back, retried, not raised."""
        if self._serial is None:
            return await self._run(job)
        async with self._serial:
            return await self._run(job)

    async def _run(self, job: ScheduledJob) -> Any:
        handler = self.handlers.get(job.name)
        if handler is None:
            logger.error("No handler registered for job %s", job.name.value)
            return None
        attributes = {"job": job.name.value, "attempt": job.attempt, **job.kwargs}
        try:
            async with TracedOperation(f"job.{job.name.value}", attributes):
                async with self.transaction() as ctx:
                    result = await handler(ctx, **job.kwargs)
        except Exception as e:
            await self._handle_failure(job, e)
            return None
        return result

    async def _handle_failure(self, job: ScheduledJob, error: Exception) -> None:
        max_attempts = self.settings.job_max_attempts
        if job.attempt < max_attempts:
            delay_ms = self.settings.job_retry_delay_ms * job.attempt
            logger.warning(
                "Job %s attempt %d/%d failed and was rolled back; retrying in %d ms",
                job.name.value,
                job.attempt,
                max_attempts,
                delay_ms,
                exc_info=error,
            )
            self.queue.submit(replace(job, attempt=job.attempt + 1, delay_ms=delay_ms))
            return

        logger.error(
            "Job %s failed after %d attempts; giving up (%s)",
            job.name.value,
            job.attempt,
            job.kwargs,
            exc_info=error,
        )
        give_up = self.give_up_handlers.get(job.name)
        if give_up is None:
            return
        message = str(error) or error.__class__.__name__
        try:
            async with self.transaction() as ctx:
                await give_up(ctx, message, **job.kwargs)
        except Exception:
            logger.exception("Give-up handler for job %s failed", job.name.value)
