"""DomainEvent repository: event store queries used by the event bus."""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.infrastructure.persistence.models.domain_event import DomainEvent
from statusflow.infrastructure.persistence.repositories.base import BaseRepository
from statusflow.shared.enums import DomainEventStatus


class DomainEventRepository(BaseRepository[DomainEvent]):
    """Event store access. Ordering is oldest first (created_at, then id)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DomainEvent)

    def _ready_filter(self, now: datetime):
        return (
            DomainEvent.status == DomainEventStatus.PENDING.value,
            DomainEvent.available_at <= now,
        )

    async def get_ready_batch(self, now: datetime, limit: int) -> list[DomainEvent]:
        """Oldest pending events whose retry delay has elapsed.

        Rows are locked FOR UPDATE SKIP LOCKED so concurrent batches never
        claim the same event (SQLite renders no lock clause).
        """
        result = await self.db.execute(
            select(DomainEvent)
            .where(*self._ready_filter(now))
            .order_by(DomainEvent.created_at, DomainEvent.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return list(result.scalars().all())

    async def has_ready(self, now: datetime) -> bool:
        """Whether a ready event exists that no other batch has claimed."""
        result = await self.db.execute(
            select(DomainEvent.id)
            .where(*self._ready_filter(now))
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        return result.scalar_one_or_none() is not None

    async def next_available_at(self, now: datetime) -> datetime | None:
        """Earliest available_at among pending events still waiting out a retry delay."""
        result = await self.db.execute(
            select(func.min(DomainEvent.available_at)).where(
                DomainEvent.status == DomainEventStatus.PENDING.value,
                DomainEvent.available_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_correlation(
        self, org_id: str, correlation_id: str
    ) -> list[DomainEvent]:
        result = await self.db.execute(
            select(DomainEvent)
            .where(
                DomainEvent.org_id == org_id,
                DomainEvent.correlation_id == correlation_id,
            )
            .order_by(DomainEvent.created_at, DomainEvent.id)
        )
        return list(result.scalars().all())

    async def list_failed(self, org_id: str | None, limit: int) -> list[DomainEvent]:
        stmt = select(DomainEvent).where(
            DomainEvent.status == DomainEventStatus.FAILED.value
        )
        if org_id is not None:
            stmt = stmt.where(DomainEvent.org_id == org_id)
        result = await self.db.execute(
            stmt.order_by(DomainEvent.created_at, DomainEvent.id).limit(limit)
        )
        return list(result.scalars().all())

    async def delete_completed_before(self, cutoff: datetime, limit: int) -> int:
        """Delete up to limit completed events created before cutoff; return count."""
        ids_result = await self.db.execute(
            select(DomainEvent.id)
            .where(
                DomainEvent.status == DomainEventStatus.COMPLETED.value,
                DomainEvent.created_at < cutoff,
            )
            .order_by(DomainEvent.created_at)
            .limit(limit)
        )
        ids = list(ids_result.scalars().all())
        if not ids:
            return 0
        await self.db.execute(
            delete(DomainEvent)
            .where(DomainEvent.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return len(ids)

    async def count_since(
        self, since: datetime, org_id: str | None = None
    ) -> tuple[dict[str, int], dict[str, int]]:
        """Counts of events created since `since`, grouped by status and by type."""
        filters = [DomainEvent.created_at >= since]
        if org_id is not None:
            filters.append(DomainEvent.org_id == org_id)
        by_status_rows = await self.db.execute(
            select(DomainEvent.status, func.count(DomainEvent.id))
            .where(*filters)
            .group_by(DomainEvent.status)
        )
        by_type_rows = await self.db.execute(
            select(DomainEvent.event_type, func.count(DomainEvent.id))
            .where(*filters)
            .group_by(DomainEvent.event_type)
        )
        by_status = {status: count for status, count in by_status_rows.all()}
        by_type = {event_type: count for event_type, count in by_type_rows.all()}
        return by_status, by_type
