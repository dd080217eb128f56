"""Deferred job primitives: job names, scheduled jobs, and the per-transaction context.

Every unit of work (one event batch, one trigger evaluation, one automation
run) is a job. Jobs schedule successor jobs through ctx.scheduler; those
are buffered and only reach the queue once the scheduling transaction has
committed, so a rolled-back write never leaves a job behind.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.core.config import Settings


class JobName(str, Enum):
    PROCESS_EVENTS = "event_bus.process_events"
    HANDLE_STATUS_CHANGE = "automation.handle_status_change"
    EXECUTE_AUTOMATION = "automation.execute"


@dataclass(frozen=True)
class ScheduledJob:
    name: JobName
    kwargs: dict[str, Any] = field(default_factory=dict)
    delay_ms: int = 0
    attempt: int = 1


class BufferedScheduler:
    """Collects jobs scheduled during a transaction.

    mark() / discard_since() let a caller drop jobs buffered inside a
    savepoint that was rolled back.
    """

    def __init__(self) -> None:
        self._buffer: list[ScheduledJob] = []

    def run_after(self, delay_ms: int, name: JobName, **kwargs: Any) -> None:
        self._buffer.append(ScheduledJob(name=name, kwargs=kwargs, delay_ms=max(0, delay_ms)))

    def mark(self) -> int:
        return len(self._buffer)

    def discard_since(self, mark: int) -> None:
        del self._buffer[mark:]

    @property
    def buffered(self) -> list[ScheduledJob]:
        return list(self._buffer)

    def drain(self) -> list[ScheduledJob]:
        jobs, self._buffer = self._buffer, []
        return jobs


@dataclass
class JobContext:
    """What a job (or a write request) works with: one session, one scheduler."""

    db: AsyncSession
    scheduler: BufferedScheduler
    settings: Settings
    clock: Callable[[], datetime]

    def now(self) -> datetime:
        return self.clock()


JobHandler = Callable[..., Awaitable[Any]]
# Called with (ctx, error_message, **job.kwargs) once a job has used up its attempts.
GiveUpHandler = Callable[..., Awaitable[Any]]


class JobQueue(Protocol):
    """Where committed jobs go. Implementations decide when they run."""

    def bind(self, runner: Any) -> None: ...

    def submit(self, job: ScheduledJob) -> None: ...

    def clock(self) -> datetime: ...
