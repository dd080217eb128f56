"""Resolves an action's target relative to the triggering object.

Resolution failures are soft (TargetNotFoundException): the action node is
recorded as skipped and the walk continues.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from statusflow.domain.enums import ActionTargetType, EntityType
from statusflow.domain.exceptions import TargetNotFoundException
from statusflow.infrastructure.persistence.repositories.entity_repo import EntityRepository
from statusflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedTarget:
    entity_type: EntityType
    entity_id: str


class TargetResolver:
    def __init__(self, entities: EntityRepository) -> None:
        self.entities = entities

    async def resolve(
        self,
        target_type: str,
        object_type: str,
        object_id: str,
        trigger_object: Mapping[str, Any],
        org_id: str,
    ) -> ResolvedTarget:
        match target_type:
            case ActionTargetType.SELF:
                return ResolvedTarget(EntityType(object_type), object_id)
            case ActionTargetType.PROJECT:
                return await self._linked(
                    EntityType.PROJECT, trigger_object.get("project_id"), org_id
                )
            case ActionTargetType.QUOTE:
                return await self._linked(
                    EntityType.QUOTE, trigger_object.get("quote_id"), org_id
                )
            case ActionTargetType.CLIENT:
                client_id = trigger_object.get("client_id")
                if not client_id and trigger_object.get("project_id"):
                    project = await self.entities.get(
                        EntityType.PROJECT, trigger_object["project_id"]
                    )
                    if project is not None:
                        client_id = project.client_id
                return await self._linked(EntityType.CLIENT, client_id, org_id)
            case ActionTargetType.INVOICE:
                # Nothing links to an invoice from the other side.
                raise TargetNotFoundException(target_type, "no invoice reference on trigger object")
            case _:
                raise TargetNotFoundException(str(target_type), "unknown target type")

    async def _linked(
        self, entity_type: EntityType, entity_id: str | None, org_id: str
    ) -> ResolvedTarget:
        if not entity_id:
            raise TargetNotFoundException(
                entity_type.value, f"trigger object has no {entity_type.value} reference"
            )
        entity = await self.entities.get_in_org(entity_type, entity_id, org_id)
        if entity is None:
            logger.warning(
                "Target %s %s not found in org %s", entity_type.value, entity_id, org_id
            )
            raise TargetNotFoundException(
                entity_type.value, f"{entity_type.value} {entity_id} not found in organization"
            )
        return ResolvedTarget(entity_type, entity_id)
