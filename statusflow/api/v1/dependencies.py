"""Presentation-layer dependency injection (composition root).

Every route that touches the database gets a JobContext: one session in
one transaction, plus a scheduler whose jobs are released when the
request's transaction commits.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from statusflow.application.use_cases.automation_service import AutomationService
from statusflow.application.use_cases.entity_status_service import EntityStatusService
from statusflow.core.config import get_settings
from statusflow.domain.exceptions import ValidationException
from statusflow.infrastructure.scheduling import JobContext, JobRunner
from statusflow.infrastructure.services.automation_executor import AutomationExecutor
from statusflow.infrastructure.services.event_bus import EventBus


def get_job_runner(request: Request) -> JobRunner:
    runner = getattr(request.app.state, "job_runner", None)
    if runner is None:
        raise HTTPException(status_code=503, detail="Job runner not started")
    return runner


async def get_job_context(
    runner: Annotated[JobRunner, Depends(get_job_runner)],
) -> AsyncIterator[JobContext]:
    """Commit on success, roll back on exception."""
    async with runner.transaction() as ctx:
        yield ctx


def get_org_id(request: Request) -> str:
    header = get_settings().organization_header_name
    org_id = request.headers.get(header)
    if not org_id or not org_id.strip():
        raise ValidationException(f"{header} header is required", field=header)
    return org_id.strip()


def get_user_id(request: Request) -> str | None:
    return request.headers.get("X-User-ID")


def get_client_correlation_id(request: Request) -> str | None:
    return getattr(request.state, "client_correlation_id", None)


def get_automation_service(
    ctx: Annotated[JobContext, Depends(get_job_context)],
) -> AutomationService:
    return AutomationService(ctx)


def get_entity_status_service(
    ctx: Annotated[JobContext, Depends(get_job_context)],
) -> EntityStatusService:
    return EntityStatusService(ctx)


def get_event_bus(ctx: Annotated[JobContext, Depends(get_job_context)]) -> EventBus:
    return EventBus(ctx)


def get_automation_executor(
    ctx: Annotated[JobContext, Depends(get_job_context)],
) -> AutomationExecutor:
    return AutomationExecutor(ctx)


OrgId = Annotated[str, Depends(get_org_id)]
