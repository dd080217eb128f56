"""EntityStatusCount repository: per-status aggregate counters."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.infrastructure.persistence.models.entity_status_count import (
    EntityStatusCount,
)
from statusflow.infrastructure.persistence.repositories.base import BaseRepository


class StatusCountRepository(BaseRepository[EntityStatusCount]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, EntityStatusCount)

    async def _get_or_create(
        self, org_id: str, entity_type: str, status: str
    ) -> EntityStatusCount:
        result = await self.db.execute(
            select(EntityStatusCount).where(
                EntityStatusCount.org_id == org_id,
                EntityStatusCount.entity_type == entity_type,
                EntityStatusCount.status == status,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = EntityStatusCount(
                org_id=org_id, entity_type=entity_type, status=status, count=0
            )
            self.db.add(row)
            await self.db.flush()
        return row

    async def increment(self, org_id: str, entity_type: str, status: str, by: int = 1) -> None:
        row = await self._get_or_create(org_id, entity_type, status)
        row.count = max(0, row.count + by)
        await self.db.flush()

    async def move(
        self, org_id: str, entity_type: str, old_status: str | None, new_status: str
    ) -> None:
        """Move one unit from old_status to new_status (no-op when equal)."""
        if old_status == new_status:
            return
        if old_status is not None:
            await self.increment(org_id, entity_type, old_status, -1)
        await self.increment(org_id, entity_type, new_status, 1)

    async def get_counts(self, org_id: str, entity_type: str) -> dict[str, int]:
        result = await self.db.execute(
            select(EntityStatusCount.status, EntityStatusCount.count).where(
                EntityStatusCount.org_id == org_id,
                EntityStatusCount.entity_type == entity_type,
            )
        )
        return {status: count for status, count in result.all()}
