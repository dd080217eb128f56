"""Deferred job scheduling: the host of the cooperative event loop.

build_job_handlers and build_give_up_handlers live in
statusflow.infrastructure.scheduling.handlers and are not re-exported here
(that module imports the services, which import this package).
"""

from statusflow.infrastructure.scheduling.jobs import (
    BufferedScheduler,
    GiveUpHandler,
    JobContext,
    JobHandler,
    JobName,
    JobQueue,
    ScheduledJob,
)
from statusflow.infrastructure.scheduling.queues import AsyncioJobQueue, InMemoryJobQueue
from statusflow.infrastructure.scheduling.runner import JobRunner

__all__ = [
    "AsyncioJobQueue",
    "BufferedScheduler",
    "GiveUpHandler",
    "InMemoryJobQueue",
    "JobContext",
    "JobHandler",
    "JobName",
    "JobQueue",
    "JobRunner",
    "ScheduledJob",
]
