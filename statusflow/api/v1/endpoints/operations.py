"""Operations API: event store and execution log maintenance.

Stats, correlation lookup and replay are scoped to the caller's
organization; the retention cleanups are global.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from statusflow.api.v1.dependencies import OrgId, get_automation_executor, get_event_bus
from statusflow.infrastructure.services.automation_executor import AutomationExecutor
from statusflow.infrastructure.services.event_bus import EventBus
from statusflow.schemas.operations import (
    CleanupRequest,
    CleanupResponse,
    DomainEventResponse,
    EventStatsResponse,
    ExecutionStatsResponse,
    ExecutionWindowResponse,
    ReplayRequest,
    ReplayResponse,
)

router = APIRouter()

Bus = Annotated[EventBus, Depends(get_event_bus)]
Executor = Annotated[AutomationExecutor, Depends(get_automation_executor)]


@router.get("/events/stats", response_model=EventStatsResponse)
async def event_stats(org_id: OrgId, bus: Bus):
    stats = await bus.get_event_stats(org_id)
    return EventStatsResponse(
        total=stats.total,
        pending=stats.pending,
        processing=stats.processing,
        completed=stats.completed,
        failed=stats.failed,
        by_type=stats.by_type,
    )


@router.get("/events/correlation/{correlation_id}", response_model=list[DomainEventResponse])
async def events_by_correlation(correlation_id: str, org_id: OrgId, bus: Bus):
    events = await bus.get_events_by_correlation(org_id, correlation_id)
    return [DomainEventResponse.model_validate(e) for e in events]


@router.post("/events/replay", response_model=ReplayResponse)
async def replay_failed_events(org_id: OrgId, bus: Bus, body: ReplayRequest | None = None):
    limit = body.limit if body is not None else 100
    return ReplayResponse(replayed=await bus.replay_failed_events(org_id, limit))


@router.post("/events/cleanup", response_model=CleanupResponse)
async def cleanup_events(org_id: OrgId, bus: Bus, body: CleanupRequest | None = None):
    body = body or CleanupRequest()
    result = await bus.cleanup_old_events(body.older_than_days, body.batch_size)
    return CleanupResponse(deleted=result.deleted, has_more=result.has_more)


@router.get("/executions/stats", response_model=ExecutionStatsResponse)
async def execution_stats(org_id: OrgId, executor: Executor):
    stats = await executor.get_execution_stats(org_id)
    return ExecutionStatsResponse(
        last_24h=ExecutionWindowResponse(**vars(stats.last_24h)),
        last_week=ExecutionWindowResponse(**vars(stats.last_week)),
    )


@router.post("/executions/cleanup", response_model=CleanupResponse)
async def cleanup_executions(
    org_id: OrgId, executor: Executor, body: CleanupRequest | None = None
):
    body = body or CleanupRequest()
    result = await executor.cleanup_old_executions(body.older_than_days, body.batch_size)
    return CleanupResponse(deleted=result.deleted, has_more=result.has_more)
