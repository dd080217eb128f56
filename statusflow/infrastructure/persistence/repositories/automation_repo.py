"""WorkflowAutomation repository (matcher queries and management CRUD)."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.infrastructure.persistence.models.automation import WorkflowAutomation
from statusflow.infrastructure.persistence.repositories.base import BaseRepository


class AutomationRepository(BaseRepository[WorkflowAutomation]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowAutomation)

    async def find_matching(
        self,
        org_id: str,
        object_type: str,
        from_status: str | None,
        to_status: str,
    ) -> list[WorkflowAutomation]:
        """Active automations of org_id whose trigger matches the status change.

        A NULL trigger_from_status matches any origin status. Results are in
        creation order.
        """
        from_clause = WorkflowAutomation.trigger_from_status.is_(None)
        if from_status is not None:
            from_clause = or_(
                from_clause, WorkflowAutomation.trigger_from_status == from_status
            )
        result = await self.db.execute(
            select(WorkflowAutomation)
            .where(
                WorkflowAutomation.org_id == org_id,
                WorkflowAutomation.is_active.is_(True),
                WorkflowAutomation.trigger_object_type == object_type,
                WorkflowAutomation.trigger_to_status == to_status,
                from_clause,
            )
            .order_by(WorkflowAutomation.created_at, WorkflowAutomation.id)
        )
        return list(result.scalars().all())

    async def list_by_org(
        self, org_id: str, *, active_only: bool = False
    ) -> list[WorkflowAutomation]:
        stmt = select(WorkflowAutomation).where(WorkflowAutomation.org_id == org_id)
        if active_only:
            stmt = stmt.where(WorkflowAutomation.is_active.is_(True))
        result = await self.db.execute(
            stmt.order_by(WorkflowAutomation.name, WorkflowAutomation.id)
        )
        return list(result.scalars().all())
