"""The service queue (asyncio timers and tasks) driving real status changes end to end."""

import asyncio

from statusflow.application.use_cases.entity_status_service import EntityStatusService
from statusflow.infrastructure.persistence.database import build_sessionmaker
from statusflow.infrastructure.persistence.models import Project, Quote
from statusflow.infrastructure.scheduling import AsyncioJobQueue, JobRunner
from statusflow.infrastructure.scheduling.handlers import (
    build_give_up_handlers,
    build_job_handlers,
)
from tests.factories import ORG_ID, action_node

QUOTES = 20


async def _wait_until_idle(queue: AsyncioJobQueue, timeout: float = 30.0) -> None:
    async def _poll() -> None:
        while queue.in_flight:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


class TestAsyncioJobQueue:
    async def test_concurrent_status_changes_all_complete(
        self, engine, settings, runner, seed, create_automation, load, executions
    ) -> None:
        for n in range(QUOTES):
            await seed(
                Project(id=f"project-{n}", org_id=ORG_ID, title=f"Site {n}"),
                Quote(
                    id=f"quote-{n}",
                    org_id=ORG_ID,
                    project_id=f"project-{n}",
                    title=f"Site {n}",
                    status="sent",
                ),
            )
        await create_automation(
            "Start project on approval",
            "quote",
            "approved",
            [action_node("a1", "project", "in-progress")],
        )

        queue = AsyncioJobQueue()
        service_runner = JobRunner(
            build_sessionmaker(engine),
            queue,
            settings.model_copy(update={"job_retry_delay_ms": 10}),
            build_job_handlers(),
            build_give_up_handlers(),
        )
        try:
            for n in range(QUOTES):
                async with service_runner.transaction() as ctx:
                    await EntityStatusService(ctx).update_status(
                        ORG_ID, "quote", f"quote-{n}", "approved", source="tests"
                    )
            await _wait_until_idle(queue)
        finally:
            await queue.shutdown()

        runs = await executions()
        assert len(runs) == QUOTES
        assert {e.status for e in runs} == {"completed"}
        assert {e.triggered_by for e in runs} == {f"quote-{n}" for n in range(QUOTES)}
        for n in range(QUOTES):
            assert (await load(Project, f"project-{n}")).status == "in-progress"
