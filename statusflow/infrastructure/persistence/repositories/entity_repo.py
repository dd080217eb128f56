"""Business entity repository: status-bearing rows by entity type."""

import copy
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statusflow.domain.enums import EntityType
from statusflow.infrastructure.persistence.models import Client, Invoice, Project, Quote, Task

StatusEntity = Client | Project | Quote | Invoice | Task

ENTITY_MODELS: dict[EntityType, type[StatusEntity]] = {
    EntityType.CLIENT: Client,
    EntityType.PROJECT: Project,
    EntityType.QUOTE: Quote,
    EntityType.INVOICE: Invoice,
    EntityType.TASK: Task,
}


def snapshot(obj: StatusEntity) -> dict[str, Any]:
    """Plain dict of the row's column values (deep-copied JSON values)."""
    mapper = sa_inspect(obj).mapper
    return {attr.key: copy.deepcopy(getattr(obj, attr.key)) for attr in mapper.column_attrs}


class EntityRepository:
    """Loads clients, projects, quotes, invoices and tasks by (type, id)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def model_for(entity_type: EntityType | str) -> type[StatusEntity]:
        return ENTITY_MODELS[EntityType(entity_type)]

    async def get(self, entity_type: EntityType | str, entity_id: str) -> StatusEntity | None:
        model: Any = self.model_for(entity_type)
        result = await self.db.execute(select(model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_in_org(
        self, entity_type: EntityType | str, entity_id: str, org_id: str
    ) -> StatusEntity | None:
        """Return the row only if it belongs to org_id."""
        model: Any = self.model_for(entity_type)
        result = await self.db.execute(
            select(model).where(model.id == entity_id, model.org_id == org_id)
        )
        return result.scalar_one_or_none()

    async def add(self, obj: StatusEntity) -> StatusEntity:
        self.db.add(obj)
        await self.db.flush()
        return obj
