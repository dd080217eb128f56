"""Run retention: delete completed domain events and finished executions past retention.

Usage:
    uv run python -m scripts.run_retention [older_than_days]
If older_than_days is omitted, EVENT_RETENTION_DAYS and
EXECUTION_RETENTION_DAYS from config are used. Deletes in batches of
CLEANUP_BATCH_SIZE, one transaction per batch, until nothing is left.
"""

import asyncio
import sys

from statusflow.core.config import get_settings
import statusflow.infrastructure.persistence.database as database
from statusflow.infrastructure.scheduling import InMemoryJobQueue, JobRunner
from statusflow.infrastructure.services.automation_executor import AutomationExecutor
from statusflow.infrastructure.services.event_bus import EventBus
from statusflow.shared.telemetry.logging import setup_logging
from statusflow.shared.utils.datetime import utc_now


async def main() -> None:
    settings = get_settings()
    setup_logging()
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        print("AsyncSessionLocal not configured", file=sys.stderr)
        sys.exit(1)

    older_than_days = int(sys.argv[1]) if len(sys.argv) > 1 else None
    if older_than_days is not None and older_than_days < 0:
        print("older_than_days must be >= 0", file=sys.stderr)
        sys.exit(1)

    # No handlers: cleanup never schedules follow-up jobs.
    runner = JobRunner(database.AsyncSessionLocal, InMemoryJobQueue(start=utc_now()), settings, {})

    events_deleted = 0
    while True:
        async with runner.transaction() as ctx:
            result = await EventBus(ctx).cleanup_old_events(older_than_days)
        events_deleted += result.deleted
        if not result.has_more:
            break

    executions_deleted = 0
    while True:
        async with runner.transaction() as ctx:
            result = await AutomationExecutor(ctx).cleanup_old_executions(older_than_days)
        executions_deleted += result.deleted
        if not result.has_more:
            break

    print(f"Done. Deleted {events_deleted} event(s), {executions_deleted} execution(s)")
    await database.dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
