"""Job name -> handler wiring for the event bus and the automation executor."""

from typing import Any

from statusflow.infrastructure.scheduling.jobs import (
    GiveUpHandler,
    JobContext,
    JobHandler,
    JobName,
)
from statusflow.infrastructure.services.automation_executor import AutomationExecutor
from statusflow.infrastructure.services.event_bus import EventBus, EventRouter


def build_job_handlers(router: EventRouter | None = None) -> dict[JobName, JobHandler]:
    """Handlers for every JobName. router replaces the default event routing."""

    async def process_events(ctx: JobContext) -> Any:
        return await EventBus(ctx, router).process_events()

    async def handle_status_change(ctx: JobContext, **kwargs: Any) -> Any:
        executor = AutomationExecutor(ctx, EventBus(ctx, router))
        return await executor.handle_status_change_event(**kwargs)

    async def execute_automation(ctx: JobContext, **kwargs: Any) -> Any:
        executor = AutomationExecutor(ctx, EventBus(ctx, router))
        return await executor.execute_automation(**kwargs)

    return {
        JobName.PROCESS_EVENTS: process_events,
        JobName.HANDLE_STATUS_CHANGE: handle_status_change,
        JobName.EXECUTE_AUTOMATION: execute_automation,
    }


def build_give_up_handlers(router: EventRouter | None = None) -> dict[JobName, GiveUpHandler]:
    """What to do once a job has used up its attempts.

    An execute job that never committed would leave its execution running;
    it is failed here instead. Process jobs need nothing: their events were
    rolled back to pending and the next batch or startup drain picks them up.
    """

    async def abandon_execution(
        ctx: JobContext,
        error: str,
        execution_id: str,
        correlation_id: str | None = None,
        event_id: str | None = None,
        **_: Any,
    ) -> Any:
        executor = AutomationExecutor(ctx, EventBus(ctx, router))
        return await executor.abandon_execution(execution_id, error, correlation_id, event_id)

    return {JobName.EXECUTE_AUTOMATION: abandon_execution}
