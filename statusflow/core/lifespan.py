"""Application lifespan: startup and shutdown.

Wiring only: logging, DB engine and schema, the job runner with its
asyncio queue. At startup one process_events job drains events left
pending by a previous process.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from statusflow.core.config import get_settings
from statusflow.infrastructure.persistence import database
from statusflow.infrastructure.scheduling import AsyncioJobQueue, JobName, JobRunner
from statusflow.infrastructure.scheduling.handlers import (
    build_give_up_handlers,
    build_job_handlers,
)
from statusflow.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    database._ensure_engine()
    assert database.engine is not None and database.AsyncSessionLocal is not None
    await database.create_schema(database.engine)

    queue = AsyncioJobQueue()
    runner = JobRunner(
        database.AsyncSessionLocal,
        queue,
        settings,
        build_job_handlers(),
        build_give_up_handlers(),
    )
    app.state.job_runner = runner
    if settings.scheduler_autostart:
        runner.enqueue(JobName.PROCESS_EVENTS)
        logger.info("Scheduled startup drain of pending events")

    yield

    # ---- Shutdown ----
    await queue.shutdown()
    app.state.job_runner = None
    await database.dispose_engine()
    logger.info("Database engine disposed")
