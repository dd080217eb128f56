"""Event bus: publish domain events and drive the cooperative processing loop.

process_events handles one batch per job. Each event is marked processing,
dispatched to its subscribers inside a savepoint, then marked completed,
put back to pending for a delayed retry, or marked failed once its
attempts are used up. If ready events remain after the batch, the job
schedules its own continuation; otherwise it schedules a wake-up for the
earliest delayed retry. Dispatch failures never propagate to whoever
published the event.
"""

import math
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from statusflow.application.dtos.engine import CleanupResult, EventStats, ProcessEventsResult
from statusflow.application.dtos.status_change import (
    CascadeMetadata,
    build_status_change,
    parse_status_change,
)
from statusflow.domain.entities.domain_event import ensure_event_transition
from statusflow.infrastructure.persistence.models.domain_event import DomainEvent
from statusflow.infrastructure.persistence.repositories.domain_event_repo import (
    DomainEventRepository,
)
from statusflow.infrastructure.scheduling.jobs import JobContext, JobName
from statusflow.shared.enums import DomainEventStatus, EventType
from statusflow.shared.telemetry.logging import get_logger
from statusflow.shared.telemetry.tracing import add_span_attributes
from statusflow.shared.utils.datetime import ensure_utc, ms_after, to_epoch_ms

logger = get_logger(__name__)

Subscriber = Callable[[JobContext, DomainEvent], Awaitable[None]]


class EventRouter:
    """Event type -> subscribers. Subscribers run in registration order."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: str, subscriber: Subscriber) -> None:
        self._subscribers[str(event_type)].append(subscriber)

    def subscribers_for(self, event_type: str) -> list[Subscriber]:
        return list(self._subscribers.get(event_type, ()))

    async def dispatch(self, ctx: JobContext, event: DomainEvent) -> None:
        subscribers = self.subscribers_for(event.event_type)
        if not subscribers:
            logger.warning(
                "No subscriber for event type %s (event %s); completing",
                event.event_type,
                event.id,
            )
            return
        for subscriber in subscribers:
            await subscriber(ctx, event)


async def schedule_automation_handler(ctx: JobContext, event: DomainEvent) -> None:
    """entity.status_changed: hand the change to the automation executor.

    Cascade metadata from the payload (execution chain, depth) is forwarded
    so the executor's guards see the whole chain.
    """
    payload = parse_status_change(event.payload)
    metadata = payload.metadata or CascadeMetadata()
    ctx.scheduler.run_after(
        0,
        JobName.HANDLE_STATUS_CHANGE,
        org_id=event.org_id,
        entity_type=payload.entity_type,
        entity_id=payload.entity_id,
        from_status=payload.old_value.value if payload.old_value else None,
        to_status=payload.new_value.value,
        correlation_id=event.correlation_id,
        event_id=event.id,
        execution_chain=list(metadata.execution_chain),
        recursion_depth=metadata.recursion_depth,
    )


async def _observe_only(ctx: JobContext, event: DomainEvent) -> None:
    logger.debug("Observed %s event %s", event.event_type, event.id)


def default_router() -> EventRouter:
    router = EventRouter()
    router.subscribe(EventType.ENTITY_STATUS_CHANGED.value, schedule_automation_handler)
    for informational in (
        EventType.AUTOMATION_TRIGGERED,
        EventType.AUTOMATION_COMPLETED,
        EventType.AUTOMATION_FAILED,
    ):
        router.subscribe(informational.value, _observe_only)
    return router


class EventBus:
    """Event store writes, batch processing and the operational surface."""

    def __init__(self, ctx: JobContext, router: EventRouter | None = None) -> None:
        self.ctx = ctx
        self.settings = ctx.settings
        self.events = DomainEventRepository(ctx.db)
        self.router = router or default_router()

    async def publish_event(
        self,
        org_id: str,
        event_type: str,
        event_source: str,
        payload: dict[str, Any],
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> str:
        """Insert a pending event and schedule immediate processing."""
        event = DomainEvent(
            org_id=org_id,
            event_type=str(event_type),
            event_source=event_source,
            payload=payload,
            status=DomainEventStatus.PENDING.value,
            attempt_count=0,
            correlation_id=correlation_id,
            causation_id=causation_id,
            available_at=self.ctx.now(),
        )
        await self.events.create(event)
        self.ctx.scheduler.run_after(0, JobName.PROCESS_EVENTS)
        logger.debug("Published %s event %s (org %s)", event.event_type, event.id, org_id)
        return event.id

    async def record_event(
        self,
        org_id: str,
        event_type: str,
        event_source: str,
        payload: dict[str, Any],
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> str:
        """Insert an informational event that is already completed (never dispatched)."""
        now = self.ctx.now()
        event = DomainEvent(
            org_id=org_id,
            event_type=str(event_type),
            event_source=event_source,
            payload=payload,
            status=DomainEventStatus.COMPLETED.value,
            attempt_count=0,
            correlation_id=correlation_id,
            causation_id=causation_id,
            available_at=now,
            processed_at=now,
        )
        await self.events.create(event)
        return event.id

    async def emit_status_change_event(
        self,
        org_id: str,
        entity_type: str,
        entity_id: str,
        old_status: str | None,
        new_status: str,
        source: str,
        correlation_id: str | None = None,
        metadata: CascadeMetadata | None = None,
        causation_id: str | None = None,
    ) -> str:
        """Publish entity.status_changed for an entity whose status just changed."""
        payload = build_status_change(entity_type, entity_id, old_status, new_status, metadata)
        if correlation_id is None:
            correlation_id = f"{entity_type}-{entity_id}-{to_epoch_ms(self.ctx.now())}"
        return await self.publish_event(
            org_id,
            EventType.ENTITY_STATUS_CHANGED.value,
            source,
            payload,
            correlation_id=correlation_id,
            causation_id=causation_id,
        )

    def _retry_delay_ms(self, attempt: int) -> int:
        base = self.settings.event_retry_delay_ms
        if self.settings.event_retry_backoff == "exponential":
            return base * 2 ** max(0, attempt - 1)
        return base

    async def process_events(self) -> ProcessEventsResult:
        """Process one batch of ready events; reschedule if more are ready."""
        batch = await self.events.get_ready_batch(self.ctx.now(), self.settings.event_batch_size)
        succeeded = retried = failed = 0
        for event in batch:
            outcome = await self._process_one(event)
            if outcome == DomainEventStatus.COMPLETED:
                succeeded += 1
            elif outcome == DomainEventStatus.PENDING:
                retried += 1
            else:
                failed += 1

        has_more = await self.events.has_ready(self.ctx.now())
        if has_more:
            self.ctx.scheduler.run_after(0, JobName.PROCESS_EVENTS)
        else:
            await self._schedule_wake_up()
        if batch:
            logger.info(
                "Processed %d events (%d completed, %d retrying, %d failed)%s",
                len(batch),
                succeeded,
                retried,
                failed,
                "; more pending" if has_more else "",
            )
        add_span_attributes(events_processed=len(batch))
        return ProcessEventsResult(
            processed=len(batch),
            succeeded=succeeded,
            retried=retried,
            failed=failed,
            has_more=has_more,
        )

    async def _schedule_wake_up(self) -> None:
        """Schedule the next batch for when the earliest delayed retry becomes ready.

        Retry delays live on the rows, so a fresh process (startup drain)
        finds them here as well.
        """
        now = self.ctx.now()
        next_at = await self.events.next_available_at(now)
        if next_at is None:
            return
        wait_ms = math.ceil((ensure_utc(next_at) - now).total_seconds() * 1000)
        self.ctx.scheduler.run_after(max(1, wait_ms), JobName.PROCESS_EVENTS)

    async def _process_one(self, event: DomainEvent) -> DomainEventStatus:
        db = self.ctx.db
        ensure_event_transition(event.id, event.status, DomainEventStatus.PROCESSING.value)
        event.status = DomainEventStatus.PROCESSING.value
        event.attempt_count += 1
        await db.flush()

        mark = self.ctx.scheduler.mark()
        try:
            async with db.begin_nested():
                await self.dispatch_event(event)
        except Exception as e:
            self.ctx.scheduler.discard_since(mark)
            return await self._record_failure(event, e)

        ensure_event_transition(event.id, event.status, DomainEventStatus.COMPLETED.value)
        event.status = DomainEventStatus.COMPLETED.value
        event.processed_at = self.ctx.now()
        await db.flush()
        return DomainEventStatus.COMPLETED

    async def _record_failure(self, event: DomainEvent, error: Exception) -> DomainEventStatus:
        # The savepoint rollback may have expired the row; reload its flushed state.
        await self.ctx.db.refresh(event)
        now = self.ctx.now()
        message = str(error) or error.__class__.__name__
        if event.attempt_count >= self.settings.event_max_retry_attempts:
            ensure_event_transition(event.id, event.status, DomainEventStatus.FAILED.value)
            event.status = DomainEventStatus.FAILED.value
            event.error_message = message
            event.failed_at = now
            await self.ctx.db.flush()
            logger.error(
                "Event %s (%s) failed after %d attempts: %s",
                event.id,
                event.event_type,
                event.attempt_count,
                message,
            )
            return DomainEventStatus.FAILED

        delay_ms = self._retry_delay_ms(event.attempt_count)
        ensure_event_transition(event.id, event.status, DomainEventStatus.PENDING.value)
        event.status = DomainEventStatus.PENDING.value
        event.error_message = message
        event.available_at = ms_after(now, delay_ms)
        await self.ctx.db.flush()
        logger.warning(
            "Event %s (%s) attempt %d failed, retrying in %d ms: %s",
            event.id,
            event.event_type,
            event.attempt_count,
            delay_ms,
            message,
        )
        return DomainEventStatus.PENDING

    async def dispatch_event(self, event: DomainEvent) -> None:
        await self.router.dispatch(self.ctx, event)

    # Operations

    async def get_events_by_correlation(
        self, org_id: str, correlation_id: str
    ) -> list[DomainEvent]:
        return await self.events.list_by_correlation(org_id, correlation_id)

    async def replay_failed_events(self, org_id: str | None = None, limit: int = 100) -> int:
        """Reset failed events to pending with a fresh attempt budget."""
        events = await self.events.list_failed(org_id, limit)
        now = self.ctx.now()
        for event in events:
            ensure_event_transition(event.id, event.status, DomainEventStatus.PENDING.value)
            event.status = DomainEventStatus.PENDING.value
            event.attempt_count = 0
            event.error_message = None
            event.failed_at = None
            event.available_at = now
        await self.ctx.db.flush()
        if events:
            self.ctx.scheduler.run_after(0, JobName.PROCESS_EVENTS)
            logger.info("Replaying %d failed events (org %s)", len(events), org_id or "*")
        return len(events)

    async def cleanup_old_events(
        self, older_than_days: int | None = None, batch_size: int | None = None
    ) -> CleanupResult:
        """Delete one batch of completed events older than the retention period."""
        days = older_than_days if older_than_days is not None else self.settings.event_retention_days
        limit = batch_size if batch_size is not None else self.settings.cleanup_batch_size
        cutoff = self.ctx.now() - timedelta(days=days)
        deleted = await self.events.delete_completed_before(cutoff, limit)
        if deleted:
            logger.info("Deleted %d completed events older than %d days", deleted, days)
        return CleanupResult(deleted=deleted, has_more=deleted == limit)

    async def get_event_stats(self, org_id: str | None = None) -> EventStats:
        """Counts of events created in the last 24 hours, by status and by type."""
        since = self.ctx.now() - timedelta(hours=24)
        by_status, by_type = await self.events.count_since(since, org_id)
        return EventStats(
            total=sum(by_status.values()),
            pending=by_status.get(DomainEventStatus.PENDING.value, 0),
            processing=by_status.get(DomainEventStatus.PROCESSING.value, 0),
            completed=by_status.get(DomainEventStatus.COMPLETED.value, 0),
            failed=by_status.get(DomainEventStatus.FAILED.value, 0),
            by_type=by_type,
        )
