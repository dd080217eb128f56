"""Pytest configuration and fixtures for statusflow.

Every test gets its own SQLite file (tmp_path) with the schema created
from ORM metadata, a JobRunner wired to the real job handlers, and an
InMemoryJobQueue: jobs scheduled by a committed transaction sit in the
queue until the test calls queue.run_until_idle(), and time only moves
on the queue's virtual clock.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from statusflow.application.dtos.automation import AutomationCreate
from statusflow.application.use_cases.automation_service import AutomationService
from statusflow.application.use_cases.entity_status_service import (
    EntityStatusService,
    StatusUpdateResult,
)
from statusflow.core.config import Settings
from statusflow.domain.entities.automation import AutomationTrigger
from statusflow.infrastructure.persistence.database import (
    build_engine,
    build_sessionmaker,
    create_schema,
)
from statusflow.infrastructure.persistence.models import (
    DomainEvent,
    Organization,
    WorkflowExecution,
)
from statusflow.infrastructure.scheduling import InMemoryJobQueue, JobRunner
from statusflow.infrastructure.scheduling.handlers import (
    build_give_up_handlers,
    build_job_handlers,
)
from statusflow.infrastructure.services.event_bus import EventRouter
from statusflow.main import create_app

from tests.factories import ORG_ID, OTHER_ORG_ID


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings: file-backed SQLite, no retry delay, no startup drain."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'statusflow.db'}",
        event_retry_delay_ms=0,
        scheduler_autostart=False,
    )


@pytest.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = build_engine(settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def queue() -> InMemoryJobQueue:
    return InMemoryJobQueue()


@pytest.fixture
def make_runner(
    engine: AsyncEngine, settings: Settings, queue: InMemoryJobQueue
) -> Callable[..., JobRunner]:
    """Build a JobRunner on the test database.

    Args:
        router: Optional EventRouter replacing the default subscribers.
        **overrides: Settings fields to override for this runner.
    """
    session_factory = build_sessionmaker(engine)

    def _make(router: EventRouter | None = None, **overrides: Any) -> JobRunner:
        runner_settings = settings.model_copy(update=overrides) if overrides else settings
        return JobRunner(
            session_factory,
            queue,
            runner_settings,
            build_job_handlers(router),
            build_give_up_handlers(router),
        )

    return _make


@pytest.fixture
async def runner(make_runner: Callable[..., JobRunner]) -> JobRunner:
    """Default runner with both test organizations created."""
    runner = make_runner()
    async with runner.transaction() as ctx:
        ctx.db.add_all(
            [
                Organization(id=ORG_ID, name="Acme"),
                Organization(id=OTHER_ORG_ID, name="Globex"),
            ]
        )
    return runner


@pytest.fixture
def seed(runner: JobRunner) -> Callable[..., Awaitable[list[Any]]]:
    """Insert rows in one committed transaction and return them."""

    async def _seed(*rows: Any) -> list[Any]:
        async with runner.transaction() as ctx:
            ctx.db.add_all(rows)
            await ctx.db.flush()
        return list(rows)

    return _seed


@pytest.fixture
def create_automation(runner: JobRunner) -> Callable[..., Awaitable[str]]:
    """Create an active automation through AutomationService; return its id."""

    async def _create(
        name: str,
        object_type: str,
        to_status: str,
        nodes: list[dict[str, Any]],
        from_status: str | None = None,
        org_id: str = ORG_ID,
        is_active: bool = True,
    ) -> str:
        async with runner.transaction() as ctx:
            automation = await AutomationService(ctx).create(
                org_id,
                "user-1",
                AutomationCreate(
                    name=name,
                    trigger=AutomationTrigger(
                        object_type=object_type, to_status=to_status, from_status=from_status
                    ),
                    nodes=nodes,
                    is_active=is_active,
                ),
            )
        return automation.id

    return _create


@pytest.fixture
def set_status(runner: JobRunner) -> Callable[..., Awaitable[StatusUpdateResult]]:
    """Change an entity's status through EntityStatusService (jobs stay queued)."""

    async def _set(
        entity_type: str,
        entity_id: str,
        new_status: str,
        org_id: str = ORG_ID,
        correlation_id: str | None = None,
    ) -> StatusUpdateResult:
        async with runner.transaction() as ctx:
            return await EntityStatusService(ctx).update_status(
                org_id,
                entity_type,
                entity_id,
                new_status,
                source="tests",
                correlation_id=correlation_id,
            )

    return _set


@pytest.fixture
def load(runner: JobRunner) -> Callable[..., Awaitable[Any]]:
    """Fetch a fresh copy of a row by model and id."""

    async def _load(model: Any, row_id: str) -> Any:
        async with runner.transaction() as ctx:
            return await ctx.db.get(model, row_id)

    return _load


@pytest.fixture
def executions(runner: JobRunner) -> Callable[..., Awaitable[list[WorkflowExecution]]]:
    """All executions of an organization, oldest first."""

    async def _executions(org_id: str = ORG_ID) -> list[WorkflowExecution]:
        async with runner.transaction() as ctx:
            result = await ctx.db.execute(
                select(WorkflowExecution)
                .where(WorkflowExecution.org_id == org_id)
                .order_by(WorkflowExecution.created_at, WorkflowExecution.id)
            )
            return list(result.scalars().all())

    return _executions


@pytest.fixture
def events(runner: JobRunner) -> Callable[..., Awaitable[list[DomainEvent]]]:
    """Events of an organization, oldest first, optionally filtered by type."""

    async def _events(event_type: str | None = None, org_id: str = ORG_ID) -> list[DomainEvent]:
        async with runner.transaction() as ctx:
            stmt = select(DomainEvent).where(DomainEvent.org_id == org_id)
            if event_type is not None:
                stmt = stmt.where(DomainEvent.event_type == event_type)
            result = await ctx.db.execute(stmt.order_by(DomainEvent.created_at, DomainEvent.id))
            return list(result.scalars().all())

    return _events


@pytest.fixture
async def client(runner: JobRunner) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against a fresh app (ASGI) using the test runner.

    ASGITransport does not run the lifespan, so the runner is attached to
    app.state directly.
    """
    app = create_app()
    app.state.job_runner = runner
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
