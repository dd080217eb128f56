"""WorkflowExecution repository (audit log, rate window, retention)."""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.infrastructure.persistence.models.automation import WorkflowExecution
from statusflow.infrastructure.persistence.models.organization import Organization
from statusflow.infrastructure.persistence.repositories.base import BaseRepository
from statusflow.shared.enums import ExecutionStatus

_DELETE_CHUNK = 100


class ExecutionRepository(BaseRepository[WorkflowExecution]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowExecution)

    async def lock_organization(self, org_id: str) -> None:
        """Lock the organization row until commit (no-op on SQLite).

        Rate checks for one organization then count and insert one at a time.
        """
        await self.db.execute(
            select(Organization.id).where(Organization.id == org_id).with_for_update()
        )

    async def count_since(self, org_id: str, since: datetime) -> int:
        """Executions of any status triggered at or after `since` (rate window)."""
        result = await self.db.execute(
            select(func.count(WorkflowExecution.id)).where(
                WorkflowExecution.org_id == org_id,
                WorkflowExecution.triggered_at >= since,
            )
        )
        return result.scalar_one() or 0

    async def count_by_status_since(self, org_id: str, since: datetime) -> dict[str, int]:
        result = await self.db.execute(
            select(WorkflowExecution.status, func.count(WorkflowExecution.id))
            .where(
                WorkflowExecution.org_id == org_id,
                WorkflowExecution.triggered_at >= since,
            )
            .group_by(WorkflowExecution.status)
        )
        return {status: count for status, count in result.all()}

    async def list_for_automation(
        self, automation_id: str, limit: int
    ) -> list[WorkflowExecution]:
        """Newest first."""
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(WorkflowExecution.automation_id == automation_id)
            .order_by(WorkflowExecution.triggered_at.desc(), WorkflowExecution.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_for_automation(self, automation_id: str) -> int:
        result = await self.db.execute(
            delete(WorkflowExecution)
            .where(WorkflowExecution.automation_id == automation_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_finished_before(self, cutoff: datetime, limit: int) -> int:
        """Delete up to limit non-running executions triggered before cutoff."""
        ids_result = await self.db.execute(
            select(WorkflowExecution.id)
            .where(
                WorkflowExecution.triggered_at < cutoff,
                WorkflowExecution.status != ExecutionStatus.RUNNING.value,
            )
            .order_by(WorkflowExecution.triggered_at)
            .limit(limit)
        )
        ids = list(ids_result.scalars().all())
        for start in range(0, len(ids), _DELETE_CHUNK):
            chunk = ids[start : start + _DELETE_CHUNK]
            await self.db.execute(
                delete(WorkflowExecution)
                .where(WorkflowExecution.id.in_(chunk))
                .execution_options(synchronize_session=False)
            )
        return len(ids)
